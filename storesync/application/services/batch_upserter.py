"""
Aplicación de lotes de upserts con concurrencia acotada.

El límite de concurrencia protege el pool de conexiones, que es compartido
por los syncs de todas las tiendas: nunca hay más de `concurrency_limit`
llamadas a `upsert_fn` en vuelo.

Política de fallos (uniforme para clientes y pedidos):
- fail_fast=True (default): el chunk en curso termina de asentarse y se
  relanza el primer error; no se inicia ningún chunk posterior.
- fail_fast=False (best-effort): cada fallo se loguea y se devuelve como
  ItemFailure junto con los éxitos.
Reejecutar un lote tras un fallo parcial es seguro porque `upsert_fn` es
idempotente.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, List, Sequence, TypeVar

from loguru import logger

from storesync.domain.entities.sync import ItemFailure


T = TypeVar("T")
R = TypeVar("R")


@dataclass
class BatchResult(Generic[R]):
    """Éxitos y fallos de un lote."""

    results: List[R] = field(default_factory=list)
    failures: List[ItemFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.results)


def _default_key(item: Any) -> str:
    if isinstance(item, dict) and "shopify_id" in item:
        return str(item["shopify_id"])
    return repr(item)


class BatchUpserter:
    """Particiona items en chunks secuenciales y los aplica con un semaforo."""

    def __init__(
        self,
        *,
        batch_size: int = 50,
        concurrency_limit: int = 5,
        fail_fast: bool = True,
    ) -> None:
        _validate(batch_size, concurrency_limit)
        self.batch_size = batch_size
        self.concurrency_limit = concurrency_limit
        self.fail_fast = fail_fast

    async def apply(
        self,
        items: Sequence[T],
        upsert_fn: Callable[[T], Awaitable[R]],
        batch_size: int | None = None,
        concurrency_limit: int | None = None,
        *,
        fail_fast: bool | None = None,
        key: Callable[[T], str] = _default_key,
        label: str = "upsert",
        into: BatchResult[R] | None = None,
    ) -> BatchResult[R]:
        """
        Aplica `upsert_fn` a cada item.

        Args:
            items: Items a aplicar (filas ya mapeadas)
            upsert_fn: Upsert idempotente de un item
            batch_size: Tamaño de chunk (override)
            concurrency_limit: Máximo de llamadas simultáneas (override)
            fail_fast: Override de la política de fallos
            key: Clave legible de un item para logs/ItemFailure
            label: Nombre del lote para logs
            into: Acumulador propio; en fail-fast conserva lo ya aplicado
                aunque el error se relance

        Returns:
            BatchResult con los resultados exitosos y los fallos (best-effort)
        """
        size = self.batch_size if batch_size is None else batch_size
        limit = self.concurrency_limit if concurrency_limit is None else concurrency_limit
        stop_on_error = self.fail_fast if fail_fast is None else fail_fast
        _validate(size, limit)

        result: BatchResult[R] = into if into is not None else BatchResult()
        semaphore = asyncio.Semaphore(limit)

        async def _bounded(item: T) -> R:
            async with semaphore:
                return await upsert_fn(item)

        total_chunks = (len(items) + size - 1) // size
        for index in range(total_chunks):
            chunk = items[index * size:(index + 1) * size]
            outcomes = await asyncio.gather(
                *(_bounded(item) for item in chunk),
                return_exceptions=True,
            )

            first_error: BaseException | None = None
            for item, outcome in zip(chunk, outcomes):
                if isinstance(outcome, BaseException):
                    if isinstance(outcome, asyncio.CancelledError):
                        raise outcome
                    item_key = key(item)
                    logger.error(f"[batch:{label}] item {item_key} falló: {outcome}")
                    result.failures.append(ItemFailure(key=item_key, error=str(outcome)))
                    first_error = first_error or outcome
                else:
                    result.results.append(outcome)

            if first_error is not None and stop_on_error:
                logger.error(
                    f"[batch:{label}] abortando en chunk {index + 1}/{total_chunks} "
                    f"({len(result.failures)} fallo(s))"
                )
                raise first_error

            logger.debug(
                f"[batch:{label}] chunk {index + 1}/{total_chunks} aplicado ({len(chunk)} item(s))"
            )

        return result


def _validate(batch_size: int, concurrency_limit: int) -> None:
    if batch_size < 1:
        raise ValueError("batch_size debe ser >= 1")
    if concurrency_limit < 1:
        raise ValueError("concurrency_limit debe ser >= 1")
