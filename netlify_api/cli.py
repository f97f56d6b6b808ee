import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Dict, List, Optional

import httpx

from netlify_api.client import NetlifyClient
from netlify_api.config import ClientConfig
from netlify_api.exceptions import NetlifyApiError
from netlify_api.internal.parser.openapi import OperationRegistry

AUTHORIZE_URL = "https://app.netlify.com/authorize?response_type=ticket&ticket={ticket_id}"
TOKEN_ENV = "NETLIFY_AUTH_TOKEN"


def parse_pairs(pairs: Optional[List[str]], separator: str) -> Dict[str, str]:
    """Разбор аргументов вида name=value / Name:Value"""
    result = {}
    for pair in pairs or []:
        name, sep, value = pair.partition(separator)
        if not sep or not name:
            raise argparse.ArgumentTypeError(f"Ожидается name{separator}value: {pair}")
        result[name.strip()] = value.strip()
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Netlify API клиент из OpenAPI описания")
    parser.add_argument("--spec", type=str, help="Путь или URL к OpenAPI спецификации")
    parser.add_argument("--token", dest="access_token", type=str, help="Access token")
    parser.add_argument("--host", type=str, help="Хост API")
    parser.add_argument("--proxy", type=str, help="HTTP прокси")
    parser.add_argument("--config", type=str, default=None, help="Путь к netlify.toml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Подробный лог")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("operations", help="Список операций")

    call = subparsers.add_parser("call", help="Вызов операции")
    call.add_argument("operation_id", type=str)
    call.add_argument("-p", "--param", action="append", help="Параметр name=value")
    call.add_argument("-H", "--header", action="append", help="Заголовок Name:Value")
    call.add_argument("--body", type=str, help="JSON тело запроса")

    login = subparsers.add_parser("login", help="Получение токена через тикет")
    login.add_argument("--client-id", required=True, type=str)

    return parser


def load_config(args) -> ClientConfig:
    file_config = (
        ClientConfig.from_file(args.config) if args.config else ClientConfig.from_file()
    )
    config = (file_config or ClientConfig()).merge_with_args(args)
    if not config.access_token and os.environ.get(TOKEN_ENV):
        config.access_token = os.environ[TOKEN_ENV]
    return config


async def run_command(args, config: ClientConfig) -> int:
    registry = OperationRegistry.from_source(config.spec)

    if args.command == "operations":
        for operation in registry:
            print(f"{operation.operation_id:<40} {operation.verb:<7} {operation.path}")
        return 0

    async with NetlifyClient(registry, config=config) as client:
        if args.command == "call":
            params = parse_pairs(args.param, "=")
            if args.body:
                params["body"] = json.loads(args.body)
            headers = parse_pairs(args.header, ":")
            result = await client.call(args.operation_id, params, headers)
            print(json.dumps(result, indent=2, ensure_ascii=False, default=str))
            return 0

        if args.command == "login":
            ticket = await client.call("createTicket", {"client_id": args.client_id})
            print("🔗 Откройте ссылку для авторизации:")
            print(f"   {AUTHORIZE_URL.format(ticket_id=ticket['id'])}")
            print("⏳ Ожидание подтверждения...")
            token = await client.get_access_token(ticket)
            print(f"✅ Токен получен: {token}")
            return 0

    return 1


def main():
    """Точка входа netlify-api"""
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args)
    if not config.spec:
        print("❌ Ошибка: укажите --spec или spec в netlify.toml")
        sys.exit(1)

    try:
        code = asyncio.run(run_command(args, config))
    except (NetlifyApiError, httpx.HTTPError, argparse.ArgumentTypeError, ValueError) as e:
        print(f"❌ Ошибка: {e}")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
