"""
Script para inicializar la base de datos.

Ejecución:
  python scripts/init_db.py
  python scripts/init_db.py --shop mi-tienda.myshopify.com --token shpat_xxx --user-id 42

Sin OAuth en este servicio, `--shop/--token/--user-id` registran una tienda
a mano (desarrollo y pruebas manuales).
"""
import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

load_dotenv(_ROOT / ".env", override=False)

from storesync.core.config import settings
from storesync.infrastructure.database.session import Database
from storesync.infrastructure.repositories.commerce_repository import SqlAlchemyCommerceRepository


async def main(args: argparse.Namespace) -> int:
    """Crea las tablas y, opcionalmente, registra una tienda."""
    logger.info("Inicializando base de datos...")
    database = Database.from_settings(settings)

    try:
        await database.create_all()
        logger.success("Base de datos inicializada correctamente")

        if args.shop:
            repository = SqlAlchemyCommerceRepository(database.session_factory)
            tenant = await repository.add_store(
                shop=args.shop,
                access_token=args.token,
                user_id=args.user_id,
            )
            logger.success(f"Tienda registrada: {tenant.shop} (id={tenant.id})")
    except Exception as e:
        logger.error(f"Error al inicializar base de datos: {e}")
        raise
    finally:
        await database.close()

    return 0


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Crea las tablas de storesync.")
    parser.add_argument("--shop", help="Dominio myshopify de una tienda a registrar.")
    parser.add_argument("--token", help="Access token de la Admin API.")
    parser.add_argument("--user-id", help="Usuario dueño de la tienda.")
    args = parser.parse_args()
    if args.shop and not (args.token and args.user_id):
        parser.error("--shop requiere --token y --user-id")
    return args


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main(_parse_args())))
