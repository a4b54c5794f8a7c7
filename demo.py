"""
End-to-end walkthrough of the clinic store.

This script:
1. Loads and validates configuration
2. Seeds demo data (skipped when accounts already exist)
3. Probes the store connection
4. Prints the joined patient list and the analytics summary
5. Runs orphan detection for patients and doctors

Run with: uv run python demo.py
"""

import asyncio
from datetime import date

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from carestore.config import configure_logging, get_config
from carestore.domain.errors import StoreError
from carestore.domain.models import Role
from carestore.services.clinic import ClinicServices, open_services
from carestore.services.seed import seed_demo_data

console = Console()


async def show_status(services: ClinicServices) -> bool:
    console.print(Panel("Store Connection", style="blue"))
    status = await services.status.test_connection()

    table = Table(title="Connection Status")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Reachable", "yes" if status.reachable else "no")
    table.add_row("Table present", "yes" if status.table_present else "no")
    table.add_row("Detail", status.detail)
    table.add_row("Latency", f"{status.latency_ms:.1f} ms")
    console.print(table)
    return status.reachable and status.table_present


async def show_patients(services: ClinicServices) -> None:
    console.print(Panel("Patients", style="blue"))
    table = Table(title="Joined Patient Records")
    table.add_column("Id", style="cyan")
    table.add_column("Name", style="magenta")
    table.add_column("Email", style="white")
    table.add_column("Age", style="green")
    table.add_column("Unread", style="yellow")
    for patient in await services.patients.list():
        unread = await services.notifications.unread_count(patient.id)
        table.add_row(patient.id, patient.name, patient.email, str(patient.age), str(unread))
    console.print(table)


async def show_analytics(services: ClinicServices) -> None:
    console.print(Panel("Analytics", style="blue"))
    summary = await services.analytics.compute_summary()

    table = Table(title="Clinic Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Patients", str(summary.total_patients))
    table.add_row("Sessions", str(summary.total_sessions))
    table.add_row("Completed", str(summary.completed_sessions))
    table.add_row("Upcoming", str(summary.upcoming_sessions))
    table.add_row("Avg symptom score", f"{summary.avg_symptom_score}")
    table.add_row("Avg energy level", f"{summary.avg_energy_level}")
    table.add_row("Avg sleep quality", f"{summary.avg_sleep_quality}")
    console.print(table)

    doctor = await services.analytics.doctor_summary("3")
    console.print(
        f"Doctor 3: {doctor.todays_sessions} today, {doctor.upcoming_sessions} upcoming, "
        f"{doctor.patient_count} patients"
    )

    booked = await services.sessions.list_for_doctor("3")
    slot = services.scheduling.next_available_slot(date.today(), booked, doctor_id="3")
    if slot:
        console.print(f"Next free slot for doctor 3: {slot[0]} {slot[1]}", style="green")


async def show_orphans(services: ClinicServices) -> None:
    console.print(Panel("Orphan Detection", style="blue"))
    table = Table(title="Account/Profile Join")
    table.add_column("Role", style="cyan")
    table.add_column("Complete", style="green")
    table.add_column("Accounts without profile", style="yellow")
    table.add_column("Profiles without account", style="red")
    for role in (Role.PATIENT, Role.DOCTOR):
        report = await services.orphans.detect(role)
        table.add_row(
            role.value,
            str(len(report.complete_records)),
            ", ".join(report.accounts_without_profiles) or "-",
            ", ".join(report.profiles_without_accounts) or "-",
        )
    console.print(table)


async def main() -> None:
    config = get_config()
    configure_logging(config.logging)
    console.print(Panel("Clinic Record Store", style="bold blue"))

    async with open_services(config) as services:
        if not await show_status(services):
            console.print("Store is not usable, stopping", style="red")
            return
        try:
            if await seed_demo_data(services.store):
                console.print("Demo data seeded", style="green")
            await show_patients(services)
            await show_analytics(services)
            await show_orphans(services)
        except StoreError as e:
            console.print(f"Store operation failed: {e}", style="red")


if __name__ == "__main__":
    asyncio.run(main())
