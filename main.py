"""
Main entry point for the Quote Browser.
Provides command-line interface and system initialization.
"""

import asyncio
import argparse
import json
import sys
from typing import Optional

from utils import api_logger, qm_logger, config_manager, initialize_logging


class QuoteBrowser:
    """名言服务主类"""

    def __init__(self):
        self.config = config_manager

    def start_api_server(self, host: Optional[str] = None, port: Optional[int] = None):
        """启动API服务器，命令行参数优先于配置文件"""
        import uvicorn
        from api.app import app as api_app

        api_config = self.config.get_api_config()
        final_host = host if host is not None else api_config.host
        final_port = port if port is not None else api_config.port

        api_logger.info(f"[Main] Starting API server on {final_host}:{final_port}...")
        uvicorn.run(api_app, host=final_host, port=final_port, log_level="info")

    async def show_system_status(self):
        """读取快照并输出存储统计"""
        from quote_manager import QuoteManager

        manager = QuoteManager(self.config)
        await manager.quote_store.load()
        await manager.account_store.load()

        status = manager.get_system_status()
        summary = {
            "quotes": status["quote_store"]["quotes"],
            "categories": status["quote_store"]["categories"],
            "users": status["account_store"]["users"],
            "quote_cache": status["quote_store"]["snapshot"],
            "users_file": status["account_store"]["snapshot"],
            "provider_enabled": manager.source is not None,
        }
        print(json.dumps(summary, ensure_ascii=False, indent=2))
        return summary


def create_parser():
    """创建命令行参数解析器"""
    parser = argparse.ArgumentParser(
        description="Quote Browser - 名言浏览服务",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
使用示例:
  python main.py serve                            # 按配置文件启动API服务
  python main.py serve --host 127.0.0.1 --port 5000  # 指定监听地址与端口
  python main.py status                           # 显示快照中的存储统计
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='可用命令')

    serve_parser = subparsers.add_parser('serve', help='启动API服务器')
    serve_parser.add_argument('--host', default=None, help='监听地址 (默认: 配置文件 api_config.host)')
    serve_parser.add_argument('--port', type=int, default=None, help='监听端口 (默认: 配置文件 api_config.port)')

    subparsers.add_parser('status', help='显示系统状态')

    return parser


def main(argv=None) -> int:
    """主函数"""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    initialize_logging()
    system = QuoteBrowser()

    try:
        if args.command == 'serve':
            system.start_api_server(host=args.host, port=args.port)
        elif args.command == 'status':
            asyncio.run(system.show_system_status())
        else:
            parser.print_help()
    except KeyboardInterrupt:
        qm_logger.info("[Main] Received keyboard interrupt")
    except Exception as e:
        qm_logger.error(f"[Main] System error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
