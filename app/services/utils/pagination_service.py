from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select
from sqlalchemy import select, func
from typing import Any, Dict, Optional, Tuple
import math

from app.configs.settings import settings


class PaginationService:
    @staticmethod
    def get_page_params(page: Optional[Any], limit: Optional[Any]) -> Tuple[int, int]:
        """
        Normaliza los parámetros de paginación.
        - page: mínimo 1 (si no es numérico se usa 1)
        - limit: entre 1 y MAX_PAGE_SIZE (si no es numérico se usa DEFAULT_PAGE_SIZE)
        """
        try:
            page_num = int(page) if page is not None else 1
        except (TypeError, ValueError):
            page_num = 1

        try:
            limit_num = int(limit) if limit is not None else settings.DEFAULT_PAGE_SIZE
        except (TypeError, ValueError):
            limit_num = settings.DEFAULT_PAGE_SIZE

        page_num = max(1, page_num)
        limit_num = min(settings.MAX_PAGE_SIZE, max(1, limit_num))
        return page_num, limit_num

    @staticmethod
    async def get_paginated_data(
        db: AsyncSession,
        query: Select,
        page: Optional[Any] = 1,
        limit: Optional[Any] = None
    ) -> Dict[str, Any]:
        """
        Ejecuta una consulta ya filtrada y ordenada y devuelve una página.

        Args:
            db: Sesión de base de datos
            query: select() con filtros y order_by aplicados
            page: Página solicitada (empieza en 1)
            limit: Elementos por página

        Returns:
            dict con items y metadatos de paginación (total, page, limit, total_pages)

        ejemplo de uso:
        // Primera carga
        fetch('/?page=1&limit=20')

        // Siguiente página
        fetch('/?page=2&limit=20')
        """
        page_num, limit_num = PaginationService.get_page_params(page, limit)

        # Obtener el total de registros
        total_query = select(func.count()).select_from(query.order_by(None).subquery())
        total_result = await db.execute(total_query)
        total_count = total_result.scalar() or 0

        # Obtener datos con paginación
        offset = (page_num - 1) * limit_num
        result = await db.execute(query.limit(limit_num).offset(offset))
        items = result.scalars().all()

        return {
            "items": items,
            "total": total_count,
            "page": page_num,
            "limit": limit_num,
            "total_pages": math.ceil(total_count / limit_num),
        }
