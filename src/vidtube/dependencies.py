from fastapi import Depends, Query
from sqlmodel import Session

from vidtube.config import settings
from vidtube.db.session import get_session
from vidtube.read_models import PageRequest, ReadModelBuilder
from vidtube.write_models import WriteModel


def get_read_models(db: Session = Depends(get_session)) -> ReadModelBuilder:
    return ReadModelBuilder(db)


def get_write_model(db: Session = Depends(get_session)) -> WriteModel:
    return WriteModel(db)


def page_params(
    page: int = Query(1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_type: str = Query("desc", alias="sortType"),
) -> PageRequest:
    """Paging query parameters; validated against the feed's sort fields later."""
    return PageRequest(page=page, page_size=limit, sort_by=sort_by, sort_type=sort_type.lower())
