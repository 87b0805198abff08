"""Reports API endpoints."""
from fastapi import APIRouter, Depends, Response

from app.api.deps import get_admin_backend
from app.config import get_settings
from app.database import BackendClient
from app.schemas.report import DatasetInfo, ReportRequest, ReportResponse
from app.services.reports import DATASETS, report_filename, report_to_csv, run_report

router = APIRouter(prefix="/reports", tags=["reports"])
settings = get_settings()


@router.get("/datasets", response_model=list[DatasetInfo])
async def get_datasets():
    """Available datasets with their columns and filters."""
    return [
        DatasetInfo(
            key=d.key,
            label=d.label,
            columns=list(d.columns),
            default_columns=list(d.default_columns),
            date_field=d.date_field,
            filters=list(d.filters),
        )
        for d in DATASETS.values()
    ]


async def _run(request: ReportRequest, backend: BackendClient) -> tuple[list[dict], list[str]]:
    rows = await run_report(
        backend,
        request.dataset,
        request.columns,
        filters=request.filters,
        date_from=request.date_from,
        date_to=request.date_to,
        limit=settings.report_row_limit,
    )
    return rows, request.columns


@router.post("", response_model=ReportResponse)
async def post_report(request: ReportRequest, backend: BackendClient = Depends(get_admin_backend)):
    """Run a report."""
    rows, columns = await _run(request, backend)
    return ReportResponse(
        dataset=request.dataset,
        columns=columns,
        rows=rows,
        truncated=len(rows) >= settings.report_row_limit,
    )


@router.post("/export.csv")
async def export_report(request: ReportRequest, backend: BackendClient = Depends(get_admin_backend)):
    rows, columns = await _run(request, backend)
    return Response(
        content=report_to_csv(rows, columns),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{report_filename(request.dataset)}"'},
    )
