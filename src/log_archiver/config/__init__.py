"""Pacote config: carregamento e validação das configurações do arquivador."""

from .settings import ArchiverSettings, build_settings, load_settings, validate_settings

__all__ = ["ArchiverSettings", "build_settings", "load_settings", "validate_settings"]
