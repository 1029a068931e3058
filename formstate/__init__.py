"""
Schema-driven form state engine.
"""

from .config_loader import EngineConfig, load_config
from .exceptions import DataExportError, FormStateError, SchemaError, SchemaLoadError
from .field import FormField
from .form_model import FormModel

__all__ = [
    'DataExportError',
    'EngineConfig',
    'FormField',
    'FormModel',
    'FormStateError',
    'SchemaError',
    'SchemaLoadError',
    'load_config',
]
