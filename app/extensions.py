from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager

from .cache import QueryCache

db = SQLAlchemy()
jwt = JWTManager()
query_cache = QueryCache()
