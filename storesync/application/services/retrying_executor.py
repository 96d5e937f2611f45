"""
Reintentos con backoff exponencial para accesos a la base de datos.

Solo se reintentan fallos marcados como transitorios en origen
(`retryable is True`: pool agotado, timeout, conexión perdida, o una senal
explícita de reintento). Cualquier otro error se propaga en el primer intento.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from loguru import logger

from storesync.shared.exceptions.sync import RetryExhaustedError


T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


def is_transient(error: BaseException) -> bool:
    """True si el error trae la marca estructurada de reintentable."""
    return getattr(error, "retryable", False) is True


class RetryingExecutor:
    """
    Ejecuta una operación async con reintentos acotados.

    Delay antes del reintento n (n = 1..max_retries):
        base_delay * 2 ** (n - 1)
    sin jitter.
    """

    def __init__(
        self,
        *,
        max_retries: int = 3,
        base_delay: float = 0.5,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries no puede ser negativo")
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._sleep = sleep

    def delay_for(self, retry_number: int, base_delay: Optional[float] = None) -> float:
        base = self._base_delay if base_delay is None else base_delay
        return base * (2 ** (retry_number - 1))

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        label: str,
        max_retries: Optional[int] = None,
        base_delay: Optional[float] = None,
    ) -> T:
        """
        Ejecuta `operation()` reintentando fallos transitorios.

        Args:
            operation: Callable sin argumentos que retorna un awaitable
            label: Nombre de la operación (para logs y errores)
            max_retries: Override del número de reintentos
            base_delay: Override del delay base (segundos)

        Raises:
            RetryExhaustedError: si fallan el intento inicial y todos los reintentos
            Exception: cualquier error no transitorio, sin reintentar
        """
        retries = self._max_retries if max_retries is None else max_retries
        attempt = 0

        while True:
            attempt += 1
            try:
                return await operation()
            except Exception as e:
                if not is_transient(e):
                    raise

                if attempt > retries:
                    logger.error(f"[retry] '{label}' agotó {retries} reintento(s): {e}")
                    raise RetryExhaustedError(label, attempt, e) from e

                delay = self.delay_for(attempt, base_delay)
                logger.warning(
                    f"[retry] '{label}' fallo transitorio (intento {attempt}/{retries + 1}), "
                    f"reintentando en {delay:.2f}s: {e}"
                )
                await self._sleep(delay)
