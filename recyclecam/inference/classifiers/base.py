"""
Base Classifier Interface
=========================

ABC para clasificadores de imagen (colaborador externo del core).

El core NO carga modelos: solo consume predicciones. Cualquier backend
(MobileNet via ONNX, un servicio HTTP, un replay grabado) implementa infer().
"""
from abc import ABC, abstractmethod
from typing import List

import numpy as np

from ..entities import RawPrediction


class BaseClassifier(ABC):
    """
    Contract:
    - infer: async, retorna predicciones para un frame (REQUIRED)
    - name: identificador para logs (OPTIONAL, default nombre de la clase)

    infer() puede lanzar cualquier excepción: el orchestrator la envuelve en
    ClassifierFailure, skipea el frame y continúa.
    """

    @abstractmethod
    async def infer(self, frame: np.ndarray) -> List[RawPrediction]:
        """
        Clasifica un frame.

        Args:
            frame: Imagen HxWxC (numpy)

        Returns:
            Predicciones (el orden no importa, el orchestrator ordena por probabilidad)
        """
        pass

    @property
    def name(self) -> str:
        return type(self).__name__
