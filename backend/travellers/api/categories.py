"""Categories API endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from travellers.api.deps import get_db
from travellers.models.category import Category
from travellers.schemas.category import CategoryResponse

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse])
def get_categories(db: Session = Depends(get_db)):
    """Get all story categories (no auth required)."""
    return db.query(Category).order_by(Category.name).all()
