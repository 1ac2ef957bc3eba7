"""Category Service - admin-managed complaint categories"""

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.core.database import store_operation
from app.core.exceptions import CategoryNotFoundError, ConflictError, ValidationError
from app.core.logging_config import logger
from app.models.complaint import Category, Complaint


class CategoryService:

    async def list_categories(self, db: AsyncSession) -> List[Category]:
        async with store_operation(db, "select", "categories"):
            result = await db.execute(select(Category).order_by(Category.name))
            return list(result.scalars().all())

    async def get_by_name(self, db: AsyncSession, name: str) -> Optional[Category]:
        async with store_operation(db, "select", "categories"):
            result = await db.execute(select(Category).where(Category.name == name))
            return result.scalar_one_or_none()

    async def create_category(self, db: AsyncSession, name: Optional[str], description: Optional[str] = None) -> Category:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required", field="name")

        if await self.get_by_name(db, name):
            raise ConflictError(f"Category '{name}' already exists", details={"name": name})

        category = Category(name=name, description=(description or "").strip() or None)
        async with store_operation(db, "insert", "categories"):
            db.add(category)
            await db.commit()

        logger.info(f"Category created: {name}")
        return category

    async def delete_category(self, db: AsyncSession, category_id: str) -> None:
        """Delete a category; refused while any complaint uses it"""
        async with store_operation(db, "select", "categories"):
            category = await db.get(Category, category_id)
        if category is None:
            raise CategoryNotFoundError(category_id)

        async with store_operation(db, "select", "complaints"):
            in_use = (await db.execute(
                select(func.count(Complaint.id)).where(Complaint.category == category.name)
            )).scalar() or 0
        if in_use:
            raise ConflictError(
                "Cannot delete category that is in use",
                details={"category": category.name, "complaints": in_use},
            )

        async with store_operation(db, "delete", "categories"):
            await db.delete(category)
            await db.commit()

        logger.info(f"Category deleted: {category.name}")

    async def ensure_defaults(self, db: AsyncSession, names: List[str]) -> int:
        """Seed ``names`` when the table is empty; returns how many were added"""
        async with store_operation(db, "select", "categories"):
            existing = (await db.execute(select(func.count(Category.id)))).scalar() or 0
        if existing:
            return 0

        async with store_operation(db, "insert", "categories"):
            db.add_all([Category(name=name) for name in names])
            await db.commit()

        logger.info(f"Seeded {len(names)} default categories")
        return len(names)


# Singleton instance
category_service = CategoryService()
