import os


class BaseConfig:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = False
    JSON_SORT_KEYS = False

    def __init__(self):
        # read at app creation so values from .env are seen
        self.SECRET_KEY = os.getenv('SECRET_KEY', 'change-me')
        self.SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///estimator.db')
        self.DEFAULT_USER_ID = os.getenv('DEFAULT_USER_ID', 'local-user')

        self.OPENAI_API_KEY = os.getenv('OPENAI_API_KEY', '')
        self.ANTHROPIC_API_KEY = os.getenv('ANTHROPIC_API_KEY', '')
        self.OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o')
        self.ANTHROPIC_MODEL = os.getenv('ANTHROPIC_MODEL', 'claude-3-5-sonnet-20241022')
        self.AI_REQUEST_TIMEOUT = float(os.getenv('AI_REQUEST_TIMEOUT', '60'))

        self.AI_CACHE_TTL_DAYS = int(os.getenv('AI_CACHE_TTL_DAYS', '30'))
        self.AI_CACHE_BACKEND = os.getenv('AI_CACHE_BACKEND', 'database')


class DevConfig(BaseConfig):
    DEBUG = True
    ENV = 'development'


class ProdConfig(BaseConfig):
    DEBUG = False
    ENV = 'production'
    SESSION_COOKIE_SECURE = True


class TestConfig(BaseConfig):
    TESTING = True
    ENV = 'testing'

    def __init__(self):
        super().__init__()
        self.SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
        self.DEFAULT_USER_ID = 'test-user'
        self.OPENAI_API_KEY = ''
        self.ANTHROPIC_API_KEY = ''
        self.AI_CACHE_BACKEND = 'database'
