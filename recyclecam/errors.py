"""
Error Taxonomy
==============

Excepciones del dominio RecycleCam.

Los outcomes "normales" NO son excepciones:
- Label no reconocido  -> CategoryMatcher.match() retorna None
- Región inválida      -> RegionScorer.score() retorna None

Solo son excepciones los fallos reales:
- ClassifierFailure: el clasificador externo falló (recuperable, se skipea el frame)
- ConfigurationError: lexicon o thresholds inválidos (fatal, impide iniciar sesión)
"""
from typing import Optional


class RecycleCamError(Exception):
    """Base de todas las excepciones del paquete."""
    pass


class ConfigurationError(RecycleCamError, ValueError):
    """
    Configuración inválida detectada en startup.

    Hereda de ValueError para que los validators de Pydantic la conviertan
    en ValidationError cuando se lanza dentro de un schema.
    """
    pass


class ClassifierFailure(RecycleCamError):
    """
    El clasificador externo lanzó una excepción para un frame.

    El orchestrator la captura, la loguea y continúa con el siguiente frame.
    """

    def __init__(self, message: str, frame_id: Optional[int] = None):
        super().__init__(message)
        self.frame_id = frame_id
