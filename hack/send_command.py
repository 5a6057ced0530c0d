"""コマンド送信スクリプト。

HTTP POST で /api/execute-command にコマンドを送信する開発・テスト用スクリプト。
"""

import argparse
import http.client
import json
import sys


def create_parser() -> argparse.ArgumentParser:
    """コマンドライン引数パーサーを作成する。"""
    parser = argparse.ArgumentParser(
        description="コマンドをサーバーに送信する",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="!stats",
        help="送信するコマンド (デフォルト: !stats)",
    )
    parser.add_argument(
        "-H",
        "--host",
        default="localhost",
        help="サーバーホスト (デフォルト: localhost)",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=8080,
        help="サーバーポート (デフォルト: 8080)",
    )
    return parser


def send_command(host: str, port: int, command: str) -> tuple[bool, str]:
    """コマンドを送信する。

    Args:
        host: サーバーホスト
        port: サーバーポート
        command: コマンド文字列

    Returns:
        (成功フラグ, 応答またはエラーメッセージ) のタプル
    """
    try:
        conn = http.client.HTTPConnection(host, port, timeout=30)
        try:
            conn.request(
                "POST",
                "/api/execute-command",
                body=json.dumps({"command": command}),
                headers={"Content-Type": "application/json"},
            )
            response = conn.getresponse()
            body = response.read().decode("utf-8")

            try:
                data = json.loads(body)
            except json.JSONDecodeError:
                return False, f"Invalid JSON response: {body}"

            if response.status == 200:
                return True, data.get("response", "")
            return False, f"{response.status} {data.get('error', response.reason)}"
        finally:
            conn.close()
    except ConnectionRefusedError:
        return False, "Connection refused"
    except TimeoutError:
        return False, "Connection timeout"
    except OSError as e:
        return False, str(e)


def main() -> int:
    """メインエントリーポイント。"""
    parser = create_parser()
    args = parser.parse_args()

    success, message = send_command(args.host, args.port, args.command)
    if not success:
        print(f"Error: {message}")
        return 1

    print(message)
    return 0


if __name__ == "__main__":
    sys.exit(main())
