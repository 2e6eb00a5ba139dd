"""Snapshot Service: ежедневное обновление снимка котировок Stockdio.

Состоит из:
- config: ключ API, тикеры и биржа (читаются на каждый запуск)
- api_clients: HTTP-запрос к GetStocksSnapshot с таймаутом
- validator: проверка конверта ответа (status.code, data.values)
- storage: атомарное хранение снимка вместе с timestamp
- diagnostics: диагностический лог сбоев
- updater: один цикл обновления снимка
- scheduler: ежедневный запуск и разовый повтор после сетевой ошибки
"""
