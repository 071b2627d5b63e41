# -*- coding: utf-8 -*-
"""
Single SQLAlchemy instance shared by the models and the billing layer.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

__all__ = ["db"]
