from docshare.db.session import get_engine
from docshare.db.base import Base


def init_db():
    # 导入模型，确保表注册到 Base.metadata
    import docshare.models  # noqa: F401

    engine = get_engine()
    Base.metadata.create_all(bind=engine)
