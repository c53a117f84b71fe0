import os
from datetime import timedelta


def _env_flag(name, default):
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    DEBUG = True
    TESTING = False
    # Use PostgreSQL via DATABASE_URL if provided, otherwise SQLite for local dev
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///crowdsolve_dev.db')
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = _env_flag('SQLALCHEMY_ECHO', 'false')
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'dev-secret-key')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    QUERY_CACHE_ENABLED = _env_flag('QUERY_CACHE_ENABLED', 'true')
    QUERY_CACHE_TTL = int(os.getenv('QUERY_CACHE_TTL', '60'))
    QUERY_CACHE_MAXSIZE = int(os.getenv('QUERY_CACHE_MAXSIZE', '1024'))
    FEATURED_PROBLEMS_LIMIT = int(os.getenv('FEATURED_PROBLEMS_LIMIT', '3'))
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    SQLALCHEMY_ECHO = True
    LOG_LEVEL = 'DEBUG'


class TestingConfig(Config):
    DEBUG = False
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ECHO = False
    JWT_SECRET_KEY = 'test-secret-key-with-enough-length-for-hs256'
    LOG_LEVEL = 'WARNING'
