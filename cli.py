from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional
import typer

app = typer.Typer()


@app.command()
def init_db():
    from models import Base, engine

    Base.metadata.create_all(engine)
    typer.echo("voucher tables created")


@app.command()
def create_voucher(
    code: str,
    currency: str,
    amount: str,
    starts_at: Optional[datetime] = typer.Option(None),
    expires_at: Optional[datetime] = typer.Option(None),
    created_by: Optional[str] = typer.Option(None),
):
    from core.events import EventDispatcher
    from core.voucher_issuer import issuer_from_settings
    from models import factory_session
    from models.Voucher import Voucher
    from repository.voucher import VoucherConflictError
    from schemas.voucher import voucher_detail_from_model
    from settings import SYSTEM_USER
    from validators.voucher import VoucherValidationError

    try:
        value = Decimal(amount)
    except InvalidOperation:
        typer.echo(f"{amount} is not a number", err=True)
        raise typer.Exit(code=1)

    with factory_session() as db:
        issuer = issuer_from_settings(
            db=db,
            current_user_id=created_by or SYSTEM_USER,
            dispatcher=EventDispatcher(),
        )
        voucher = Voucher(
            code=code,
            currency_id=currency,
            amount=value,
            starts_at=starts_at,
            expires_at=expires_at,
        )
        try:
            voucher = issuer.create(voucher)
        except (VoucherValidationError, VoucherConflictError) as e:
            typer.echo(str(e), err=True)
            raise typer.Exit(code=1)

        typer.echo(voucher_detail_from_model(voucher).model_dump_json(indent=2))


@app.command()
def show_voucher(code: str):
    from models import factory_session
    from repository.voucher import get_voucher_by_code
    from schemas.voucher import voucher_detail_from_model

    with factory_session() as db:
        voucher = get_voucher_by_code(db=db, code=code)
        if voucher is None:
            typer.echo(f"voucher {code} not found", err=True)
            raise typer.Exit(code=1)
        typer.echo(voucher_detail_from_model(voucher).model_dump_json(indent=2))


@app.command()
def list_vouchers(page: int = 1, page_size: int = 10, search: Optional[str] = None):
    from models import factory_session
    from repository.voucher import get_vouchers_per_page
    from schemas.voucher import VoucherListResponse

    with factory_session() as db:
        data = get_vouchers_per_page(
            db=db, page=page, page_size=page_size, search=search
        )
        typer.echo(VoucherListResponse.model_validate(data).model_dump_json(indent=2))


if __name__ == "__main__":
    app()
