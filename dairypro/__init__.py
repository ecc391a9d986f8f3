# dairypro/__init__.py

from dairypro.application import create_app

__all__ = ["create_app"]
