from magic_yarn.api.main import app

__all__ = ["app"]
