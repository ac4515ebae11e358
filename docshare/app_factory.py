'''“组装 Flask App 的工厂”（不启动服务）
负责注入配置、初始化 session、挂载 blob 存储、注册蓝图和 error handler，
不调用 app.run()；会被 run.py、gunicorn/waitress 以及单元测试调用'''
# docshare/app_factory.py
from flask import Flask, jsonify
from flask_session import Session
from cachelib.file import FileSystemCache
import os
from dotenv import load_dotenv

from docshare.db.session import reset_engine
from docshare.logger import get_logger
from docshare.storage.blob_storage import get_blob_storage

# 加载环境变量
load_dotenv()

logger = get_logger(__name__)

# 获取项目根目录（使用绝对路径）
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

UPLOAD_FOLDER = os.getenv('UPLOAD_FOLDER', os.path.join(BASE_DIR, 'uploads'))


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).lower() in ('true', '1', 'yes', 'y')


def build_config() -> dict:
    """从环境变量读取配置"""
    # 确保 SECRET_KEY 是字符串类型（不是 bytes）
    secret_key = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    if isinstance(secret_key, bytes):
        secret_key = secret_key.decode('utf-8')

    db_path = os.path.join(BASE_DIR, 'docshare.db')
    return {
        'SECRET_KEY': secret_key,
        'DATABASE_URL': os.getenv('DATABASE_URL', f"sqlite:///{db_path}"),

        # 文件上传配置
        'UPLOAD_FOLDER': UPLOAD_FOLDER,
        'BLOB_FOLDER': os.getenv('BLOB_FOLDER', os.path.join(UPLOAD_FOLDER, 'files')),
        # 请求体上限放宽，5MB 的判断交给 UploadService，返回 400 而不是 413
        'MAX_CONTENT_LENGTH': int(os.getenv('MAX_CONTENT_LENGTH', 16 * 1024 * 1024)),

        # Blob 存储（本地 / S3）
        'USE_S3_STORAGE': _env_flag('USE_S3_STORAGE'),
        'S3_BUCKET': os.getenv('S3_BUCKET'),
        'S3_PREFIX': os.getenv('S3_PREFIX', ''),
        'AWS_ACCESS_KEY_ID': os.getenv('AWS_ACCESS_KEY_ID'),
        'AWS_SECRET_ACCESS_KEY': os.getenv('AWS_SECRET_ACCESS_KEY'),
        'AWS_REGION': os.getenv('AWS_REGION'),
        'PUBLIC_URL_EXPIRES': int(os.getenv('PUBLIC_URL_EXPIRES', 3600)),

        # 渲染
        'RENDER_SCALE': float(os.getenv('RENDER_SCALE', 1.5)),

        # 分享链接的前缀，未配置时使用请求的 host
        'PUBLIC_BASE_URL': os.getenv('PUBLIC_BASE_URL', ''),

        # Session 配置（缓存评论者名字）
        'SESSION_TYPE': 'cachelib',
        'SESSION_PERMANENT': True,
        'SESSION_KEY_PREFIX': 'docshare:',
        'SESSION_CACHE_DIR': os.getenv('SESSION_CACHE_DIR', os.path.join(BASE_DIR, 'flask_session')),
    }


def create_app(config_overrides=None):
    """应用工厂函数"""
    app = Flask(__name__)

    app.config.update(build_config())
    if config_overrides:
        app.config.update(config_overrides)

    # 数据库：session.get_engine() 从 DATABASE_URL 读取
    if os.environ.get('DATABASE_URL') != app.config['DATABASE_URL']:
        os.environ['DATABASE_URL'] = app.config['DATABASE_URL']
        reset_engine()

    # session 存在本地文件缓存里，测试可以直接传 SESSION_CACHELIB
    if app.config.get('SESSION_CACHELIB') is None:
        os.makedirs(app.config['SESSION_CACHE_DIR'], exist_ok=True)
        app.config['SESSION_CACHELIB'] = FileSystemCache(cache_dir=app.config['SESSION_CACHE_DIR'], threshold=500)

    # 初始化 Session
    Session(app)

    # Blob 存储，测试可以通过 overrides 注入
    app.extensions['blob_storage'] = app.config.get('BLOB_STORAGE') or get_blob_storage(app.config)
    if app.config.get('PDF_RENDERER') is not None:
        app.extensions['pdf_renderer'] = app.config['PDF_RENDERER']

    # 注册蓝图
    from docshare.routes.upload import upload_bp
    from docshare.routes.comments import comments_bp
    from docshare.routes.files import files_bp
    from docshare.routes.session import session_bp

    app.register_blueprint(upload_bp)
    app.register_blueprint(comments_bp)
    app.register_blueprint(files_bp)
    app.register_blueprint(session_bp)

    # 注册错误处理
    register_error_handlers(app)

    logger.info(f"App created storage={type(app.extensions['blob_storage']).__name__}")
    return app


def register_error_handlers(app):
    """注册错误处理器，API 统一返回 JSON"""
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(413)
    def payload_too_large(error):
        return jsonify({'error': 'File size exceeds 5MB limit'}), 413

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Unhandled error: {error}")
        return jsonify({'error': 'Internal server error'}), 500
