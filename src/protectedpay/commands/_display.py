"""Terminal rendering of contract records."""

from __future__ import annotations

import click

from ..contract.models import ContractEvent, GroupPayment, SavingsPot, Transfer


def _when(record) -> str:
    if not record.timestamp:
        return "unknown"
    return record.created_at.strftime("%Y-%m-%d %H:%M UTC")


def echo_transfer(transfer: Transfer) -> None:
    header = transfer.id or "(transfer)"
    click.echo(f"  {header}")
    click.echo(f"    {transfer.sender} -> {transfer.recipient}")
    click.echo(f"    Amount:  {transfer.amount} ETH")
    click.echo(f"    Status:  {transfer.status.name.lower()}")
    click.echo(f"    Created: {_when(transfer)}")
    if transfer.remarks:
        click.echo(f"    Remarks: {transfer.remarks}")


def echo_group_payment(payment: GroupPayment) -> None:
    click.echo(f"  {payment.id}")
    click.echo(f"    Creator:     {payment.creator}")
    click.echo(f"    Recipient:   {payment.recipient}")
    click.echo(
        f"    Collected:   {payment.amount_collected} / {payment.total_amount} ETH"
        f" ({payment.progress:.0%})"
    )
    click.echo(f"    Per person:  {payment.amount_per_person} ETH")
    click.echo(f"    Participants: {payment.num_participants}")
    click.echo(f"    Status:      {payment.status.name.lower()}")
    click.echo(f"    Created:     {_when(payment)}")
    if payment.remarks:
        click.echo(f"    Remarks:     {payment.remarks}")


def echo_savings_pot(pot: SavingsPot) -> None:
    click.echo(f"  {pot.id}  {pot.name}")
    click.echo(f"    Owner:   {pot.owner}")
    click.echo(
        f"    Saved:   {pot.current_amount} / {pot.target_amount} ETH ({pot.progress:.0%})"
    )
    click.echo(f"    Status:  {pot.status.name.lower()}")
    click.echo(f"    Created: {_when(pot)}")
    if pot.remarks:
        click.echo(f"    Remarks: {pot.remarks}")


def format_event(event: ContractEvent) -> str:
    """One-line summary of a contract event."""
    fields = {
        k: v
        for k, v in vars(event).items()
        if v is not None and k not in ("type", "transaction_hash", "log_index")
    }
    details = " ".join(f"{k}={v}" for k, v in fields.items())
    return f"[{event.type}] {details}"
