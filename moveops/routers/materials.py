import io
import logging
from datetime import datetime
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.worksheet.table import Table, TableStyleInfo
from sqlalchemy import func
from sqlmodel import Session, select

from moveops.db import get_session
from moveops.deps import require_user
from moveops.error import abort
from moveops.models import Material, MoveMaterialUsage, User, utcnow
from moveops.schemas import (
    MaterialCreate,
    MaterialRead,
    MaterialStatistics,
    MaterialStockUpdate,
)
from moveops.services.stock import calc_signed_delta_and_new_stock

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/materials", tags=["materials"])


@router.get("", response_model=list[MaterialRead])
def list_materials(
    q: str | None = None,
    low_stock: bool = Query(False, description="only materials at or below min_stock"),
    session: Session = Depends(get_session),
    _user: User = Depends(require_user),
):
    stmt = select(Material)
    if q:
        stmt = stmt.where(Material.name.contains(q))
    if low_stock:
        stmt = stmt.where(Material.current_stock <= Material.min_stock)
    return session.exec(stmt.order_by(Material.name.asc(), Material.id.asc())).all()


@router.post("", response_model=MaterialRead)
def create_material(
    data: MaterialCreate,
    session: Session = Depends(get_session),
    _user: User = Depends(require_user),
):
    material = Material(**data.model_dump())
    session.add(material)
    session.commit()
    session.refresh(material)
    return material


@router.get("/statistics", response_model=list[MaterialStatistics])
def material_statistics(
    session: Session = Depends(get_session),
    _user: User = Depends(require_user),
):
    stmt = (
        select(
            Material.id,
            Material.name,
            func.count(MoveMaterialUsage.id),
            func.coalesce(func.sum(MoveMaterialUsage.quantity), 0),
        )
        .join(MoveMaterialUsage, MoveMaterialUsage.material_id == Material.id, isouter=True)
        .group_by(Material.id, Material.name)
        .order_by(Material.name)
    )
    return [
        {"material_id": mid, "name": name, "usage_count": count, "total_quantity": total}
        for mid, name, count, total in session.exec(stmt).all()
    ]


@router.get("/export.xlsx")
def export_materials_xlsx(
    session: Session = Depends(get_session),
    _user: User = Depends(require_user),
):
    materials = session.exec(select(Material).order_by(Material.id.asc())).all()

    header = ["ID", "Name", "Unit", "Stock", "Min stock", "Updated"]

    wb = Workbook()
    ws = wb.active
    ws.title = "Materials"

    header_font = Font(bold=True)
    header_fill = PatternFill("solid", fgColor="DDDDDD")
    header_align = Alignment(horizontal="center", vertical="center")

    ws.append(header)
    ws.row_dimensions[1].height = 24
    for col in range(1, len(header) + 1):
        cell = ws.cell(row=1, column=col)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_align

    for m in materials:
        ws.append([m.id, m.name, m.unit, m.current_stock, m.min_stock, m.updated_at])

    data_end_row = 1 + len(materials)
    ws.freeze_panes = "A2"

    for r in range(2, data_end_row + 1):
        ws.cell(row=r, column=4).number_format = "0"
        ws.cell(row=r, column=6).number_format = "yyyy-mm-dd hh:mm:ss"
        # highlight stock below the reorder point
        if ws.cell(row=r, column=4).value < ws.cell(row=r, column=5).value:
            ws.cell(row=r, column=4).font = Font(bold=True, color="C00000")

    for k, w in {"A": 8, "B": 28, "C": 10, "D": 10, "E": 10, "F": 20}.items():
        ws.column_dimensions[k].width = w

    # a table needs at least the header row
    table = Table(displayName="MaterialStock", ref=f"A1:F{max(1, data_end_row)}")
    table.tableStyleInfo = TableStyleInfo(
        name="TableStyleMedium9",
        showFirstColumn=False,
        showLastColumn=False,
        showRowStripes=True,
        showColumnStripes=False,
    )
    ws.add_table(table)

    ws.append([])
    ws.append(["Exported", datetime.now().strftime("%Y-%m-%d %H:%M:%S")])

    buf = io.BytesIO()
    wb.save(buf)

    filename = "materials.xlsx"
    headers = {
        "Content-Disposition": f"attachment; filename=\"{filename}\"; filename*=UTF-8''{quote(filename)}"
    }
    return Response(
        content=buf.getvalue(),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers=headers,
    )


@router.get("/{material_id}", response_model=MaterialRead)
def get_material(
    material_id: int,
    session: Session = Depends(get_session),
    _user: User = Depends(require_user),
):
    material = session.get(Material, material_id)
    if not material:
        abort(404, "NOT_FOUND", "Material not found")
    return material


@router.patch("/{material_id}/stock", response_model=MaterialRead)
def update_material_stock(
    material_id: int,
    body: MaterialStockUpdate,
    session: Session = Depends(get_session),
    user: User = Depends(require_user),
):
    material = session.get(Material, material_id)
    if not material:
        abort(404, "NOT_FOUND", "Material not found")

    old_stock = material.current_stock
    signed_delta, new_stock = calc_signed_delta_and_new_stock(body.action, body.delta, old_stock)

    material.current_stock = new_stock
    material.updated_at = utcnow()

    session.add(material)
    session.commit()
    session.refresh(material)

    logger.info(
        "material %s %s %+d (%d->%d) by %s",
        material.id, body.action.value, signed_delta, old_stock, new_stock, user.username,
    )
    return material
