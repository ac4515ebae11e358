# run.py
"""
run.py
标准 Flask 服务启动脚本（给开发者 / 运维 / CLI 用）
启动前检查并初始化数据库，然后用 waitress 提供服务
"""
import os
import sys

from docshare.app_factory import create_app
from docshare.db.auto_init import auto_init
from docshare.logger import get_logger

logger = get_logger("run")


def get_app_base_dir():
    """
    获取程序根目录
    - 开发态：run.py 所在目录
    - 打包后：可执行文件所在目录
    """
    if getattr(sys, "frozen", False):
        return os.path.dirname(sys.executable)
    return os.path.abspath(os.path.dirname(__file__))


def configure_database():
    """
    未设置 DATABASE_URL 时，使用程序根目录下的 docshare.db
    """
    if os.environ.get("DATABASE_URL"):
        return
    db_path = os.path.join(get_app_base_dir(), "docshare.db")
    os.environ["DATABASE_URL"] = f"sqlite:///{db_path}"
    logger.info(f"Using database: {db_path}")


def main():
    # 0️ 统一数据库路径
    configure_database()

    # 1️ 启动前初始化数据库
    auto_init()

    # 2️ 创建 Flask app
    app = create_app()
    logger.info(f"URL map: {app.url_map}")

    # 3️ 启动参数
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 5000))

    if os.getenv("FLASK_DEBUG", "false").lower() in ("true", "1"):
        app.run(host=host, port=port, debug=True, use_reloader=False)
        return

    from waitress import serve
    logger.info(f"Starting waitress on http://{host}:{port}")
    serve(app, host=host, port=port, threads=int(os.getenv("THREADS", 6)))


if __name__ == "__main__":
    main()
