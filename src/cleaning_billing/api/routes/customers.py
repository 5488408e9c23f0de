"""Customer lookup endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from cleaning_billing.api.dependencies import CurrentActor, Queries
from cleaning_billing.api.schemas import CustomerResponse

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("", response_model=list[CustomerResponse])
async def search_customers(
    actor: CurrentActor,
    queries: Queries,
    q: str = "",
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
) -> list[CustomerResponse]:
    """Customers whose name contains ``q``, for form autocomplete."""
    actor.ensure_active()
    rows = await queries.search_customers(q, limit)
    return [CustomerResponse.model_validate(row) for row in rows]
