"""
Core pagination utilities for API endpoints.
"""
from pydantic import BaseModel
from fastapi import Query
from sqlalchemy.orm import Query as SQLAlchemyQuery
from typing import List, Tuple
import math

# Keeps the row offset within a 64-bit integer
MAX_PAGE = 2**31 - 1

class PageParams:
    """
    Page parameters for pagination.
    
    Attributes:
        page: Page number (1-indexed)
        page_size: Number of items per page
    """
    def __init__(
        self,
        page: int = Query(1, ge=1, le=MAX_PAGE, description="Page number"),
        page_size: int = Query(20, ge=1, le=100, description="Items per page")
    ):
        self.page = page
        self.page_size = page_size
        self.offset = (page - 1) * page_size


class PageMetadata(BaseModel):
    """
    Paging information returned next to a list of records.
    
    Attributes:
        current_page: Current page number
        page_size: Number of items per page
        first_page: Always 1 when there are records
        last_page: Last page holding records
        total_records: Total number of matching records
    """
    current_page: int = 0
    page_size: int = 0
    first_page: int = 0
    last_page: int = 0
    total_records: int = 0


def paginate(query: SQLAlchemyQuery, page_params: PageParams) -> Tuple[List, PageMetadata]:
    """
    Paginate a SQLAlchemy query.
    
    Args:
        query: SQLAlchemy query to paginate
        page_params: Pagination parameters
        
    Returns:
        Tuple of the records on the page and the page metadata
    """
    total = query.count()
    items = query.offset(page_params.offset).limit(page_params.page_size).all()
    
    if total == 0:
        return items, PageMetadata()
    
    return items, PageMetadata(
        current_page=page_params.page,
        page_size=page_params.page_size,
        first_page=1,
        last_page=math.ceil(total / page_params.page_size),
        total_records=total
    )
