from .api import api_blueprint

__all__ = ['api_blueprint']
