"""
数据库自动初始化检查模块
在应用启动时检查 files / comments 表是否存在，不存在则建表
"""
from sqlalchemy import inspect

from docshare.db.session import get_engine
from docshare.db.init_db import init_db
from docshare.logger import get_logger

logger = get_logger(__name__)

REQUIRED_TABLES = ("files", "comments")


def check_tables_exist() -> bool:
    """检查数据库表是否存在"""
    inspector = inspect(get_engine())
    tables = set(inspector.get_table_names())
    return all(name in tables for name in REQUIRED_TABLES)


def auto_init():
    """
    自动初始化检查
    如果数据库未初始化，自动建表
    """
    logger.info("Checking database initialization state...")

    if check_tables_exist():
        logger.info("Database tables already exist")
        return

    logger.info("Database tables missing, creating...")
    try:
        init_db()
    except Exception:
        logger.exception("Failed to create database tables")
        raise
    logger.info("Database tables created")


if __name__ == "__main__":
    auto_init()
