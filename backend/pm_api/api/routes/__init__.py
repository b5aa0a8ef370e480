from pm_api.api.routes import imports

__all__ = ["imports"]
