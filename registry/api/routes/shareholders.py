"""Admin endpoints for browsing and maintaining a company's registrations."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from registry.api.deps import get_record_store
from registry.api.routes.auth import AuthenticatedUser, require_role
from registry.core.config import get_settings
from registry.schemas.shareholder import (
    BulkDeleteRequest,
    DeleteResponse,
    ShareholderPage,
    ShareholderRead,
    ShareholderUpdate,
)
from registry.services.companies import normalise_company
from registry.services.errors import (
    DuplicateRegistrationError,
    PersistenceError,
    RecordNotFoundError,
)
from registry.services.records import RecordQuery, RecordStore

router = APIRouter()

_readers = require_role("ADMIN", "COMPLIANCE")
_editors = require_role("ADMIN")


def _page_size(requested: int | None) -> int:
    settings = get_settings()
    return min(requested or settings.default_page_size, settings.max_page_size)


@router.get("/{company}/shareholders", response_model=ShareholderPage)
def list_shareholders(
    company: str,
    search: str | None = Query(default=None, max_length=255),
    sort: str | None = Query(default=None),
    order: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    per_page: int | None = Query(default=None, ge=1),
    store: RecordStore = Depends(get_record_store),
    user: AuthenticatedUser = Depends(_readers),
) -> ShareholderPage:
    page_size = _page_size(per_page)
    result = store.find_many(
        RecordQuery(
            company=normalise_company(company),
            search_term=search,
            sort_field=sort,
            sort_direction=order,
            page_size=page_size,
            page_number=page,
        )
    )
    return ShareholderPage(
        records=[ShareholderRead.model_validate(record) for record in result.records],
        total_count=result.total_count,
        page=page,
        per_page=page_size,
    )


@router.get("/{company}/shareholders/{record_id}", response_model=ShareholderRead)
def get_shareholder(
    company: str,
    record_id: int,
    store: RecordStore = Depends(get_record_store),
    user: AuthenticatedUser = Depends(_readers),
) -> ShareholderRead:
    try:
        record = store.find_by_id(record_id, normalise_company(company))
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shareholder not found") from exc
    return ShareholderRead.model_validate(record)


@router.patch("/{company}/shareholders/{record_id}", response_model=ShareholderRead)
def update_shareholder(
    company: str,
    record_id: int,
    payload: ShareholderUpdate,
    store: RecordStore = Depends(get_record_store),
    user: AuthenticatedUser = Depends(_editors),
) -> ShareholderRead:
    try:
        record = store.update(
            record_id, normalise_company(company), payload.model_dump(exclude_unset=True)
        )
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shareholder not found") from exc
    except DuplicateRegistrationError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Another entry for this company already uses that email or phone number",
        ) from exc
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Shareholder could not be saved"
        ) from exc
    return ShareholderRead.model_validate(record)


@router.delete("/{company}/shareholders/{record_id}", response_model=DeleteResponse)
def delete_shareholder(
    company: str,
    record_id: int,
    store: RecordStore = Depends(get_record_store),
    user: AuthenticatedUser = Depends(_editors),
) -> DeleteResponse:
    return DeleteResponse(deleted=store.delete(record_id, normalise_company(company)))


@router.post("/{company}/shareholders/bulk-delete", response_model=DeleteResponse)
def bulk_delete_shareholders(
    company: str,
    payload: BulkDeleteRequest,
    store: RecordStore = Depends(get_record_store),
    user: AuthenticatedUser = Depends(_editors),
) -> DeleteResponse:
    return DeleteResponse(deleted=store.delete_many(payload.ids, normalise_company(company)))


__all__ = [
    "bulk_delete_shareholders",
    "delete_shareholder",
    "get_shareholder",
    "list_shareholders",
    "router",
    "update_shareholder",
]
