"""
Screens of the BroDesk CLI

Every screen is opened through ``ScreenGate``: a SessionContext bound to
the client's session changes, and a RoleGateEvaluator over it. A screen
only renders when the gate says RENDER; otherwise the redirect target is
turned into a hint (log in, or go back to the landing screen).
"""

from typing import Any, Dict, Iterable, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from app.core.enums import AccountRole
from app.modules.auth.role_gate import ENTRY_ROUTE, GateState, RoleGateEvaluator
from app.modules.auth.session_context import SessionContext
from cli.client import BroDeskClient

STATUS_STYLES = {
    "pending": "yellow",
    "in_progress": "cyan",
    "resolved": "green",
    "approved": "green",
    "rejected": "red",
}

PRIORITY_STYLES = {"low": "dim", "medium": "yellow", "high": "bold red"}


def styled(value: Optional[str], styles: Dict[str, str]) -> str:
    if not value:
        return "-"
    style = styles.get(value)
    label = value.replace("_", " ")
    return f"[{style}]{label}[/{style}]" if style else label


def short_date(value: Optional[str]) -> str:
    return value[:16].replace("T", " ") if value else "-"


class ScreenGate:
    """Session context + role gate for one screen"""

    def __init__(self, client: BroDeskClient, console: Console):
        self.console = console
        self.redirects: List[str] = []
        self.context = SessionContext(role_resolver=client.fetch_role)
        self.context.bind(client.on_session_change, initial=client.session)

    def _navigate(self, target: str) -> None:
        self.redirects.append(target)
        if target == ENTRY_ROUTE:
            self.console.print("[yellow]Please log in first:[/yellow] brodesk login")
        else:
            self.console.print("[red]You do not have access to this screen.[/red]")

    def allows(self, roles: Iterable[AccountRole] = ()) -> bool:
        evaluator = RoleGateEvaluator(self.context, roles, navigate=self._navigate)
        try:
            return evaluator.evaluate() == GateState.RENDER
        finally:
            evaluator.close()

    @property
    def role(self) -> Optional[AccountRole]:
        return self.context.snapshot.role

    def close(self) -> None:
        self.context.close()


# ==================== Renderers ====================

def render_account(console: Console, user: Dict[str, Any]) -> None:
    lines = [
        f"[bold]{user.get('full_name', '')}[/bold]  <{user.get('email', '')}>",
        f"Role: {user.get('role') or '-'}    Status: {styled(user.get('approval_status'), STATUS_STYLES)}",
        f"Phone: {user.get('phone_number') or '-'}",
    ]
    if user.get("role") == AccountRole.STUDENT.value:
        lines.append(
            f"Course: {user.get('course') or '-'}    Batch: {user.get('batch_type') or '-'} "
            f"{user.get('batch_number') or ''}    Student ID: {user.get('student_number') or '-'}"
        )
    elif user.get("role") == AccountRole.STAFF.value:
        lines.append(
            f"Category: {user.get('category') or '-'}    Specialization: {user.get('specialization') or '-'}"
        )
    lines.append(f"Last login: {short_date(user.get('last_login'))}")
    console.print(Panel("\n".join(lines), title="Account", border_style="cyan"))


def render_complaints(console: Console, complaints: List[Dict[str, Any]], title: str,
                      show_student: bool = False, show_assignee: bool = False) -> None:
    if not complaints:
        console.print(f"[dim]{title}: no complaints[/dim]")
        return

    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title")
    table.add_column("Category")
    table.add_column("Priority")
    table.add_column("Status")
    if show_student:
        table.add_column("Student")
    if show_assignee:
        table.add_column("Assigned To")
    table.add_column("Created", no_wrap=True)

    for complaint in complaints:
        row = [
            complaint["id"],
            complaint["title"],
            complaint["category"],
            styled(complaint["priority"], PRIORITY_STYLES),
            styled(complaint["status"], STATUS_STYLES),
        ]
        if show_student:
            row.append(complaint.get("student_name") or "-")
        if show_assignee:
            row.append(complaint.get("assignee_name") or "[dim]unassigned[/dim]")
        row.append(short_date(complaint.get("created_at")))
        table.add_row(*row)

    console.print(table)


def render_status_counts(console: Console, counts: Dict[str, int], title: str) -> None:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Metric")
    table.add_column("Count", justify="right")
    for key, value in counts.items():
        table.add_row(key.replace("_", " ").capitalize(), str(value))
    console.print(table)


def render_notifications(console: Console, notifications: List[Dict[str, Any]]) -> None:
    if not notifications:
        console.print("[dim]No notifications[/dim]")
        return

    table = Table(title="Notifications", show_header=True, header_style="bold cyan")
    table.add_column("When", no_wrap=True)
    table.add_column("Title")
    table.add_column("Message")
    for notification in notifications:
        table.add_row(
            short_date(notification.get("created_at")),
            notification["title"],
            notification["message"],
        )
    console.print(table)


def render_categories(console: Console, categories: List[Dict[str, Any]]) -> None:
    table = Table(title="Categories", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name")
    table.add_column("Description")
    for category in categories:
        table.add_row(category["id"], category["name"], category.get("description") or "-")
    console.print(table)


def render_users(console: Console, users: List[Dict[str, Any]], title: str = "Users") -> None:
    if not users:
        console.print(f"[dim]{title}: none[/dim]")
        return

    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name")
    table.add_column("Email")
    table.add_column("Phone")
    table.add_column("Role")
    table.add_column("Status")
    for user in users:
        table.add_row(
            user["id"],
            user["full_name"],
            user["email"],
            user.get("phone_number") or "-",
            user.get("role") or "-",
            styled(user.get("approval_status"), STATUS_STYLES),
        )
    console.print(table)


def render_staff(console: Console, staff: List[Dict[str, Any]]) -> None:
    if not staff:
        console.print("[dim]No staff members[/dim]")
        return

    table = Table(title="Staff", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name")
    table.add_column("Email")
    table.add_column("Category")
    table.add_column("Specialization")
    table.add_column("Status")
    table.add_column("Assigned", justify="right")
    for member in staff:
        table.add_row(
            member["id"],
            member["full_name"],
            member["email"],
            member.get("category") or "-",
            member.get("specialization") or "-",
            styled(member.get("approval_status"), STATUS_STYLES),
            str(member.get("assigned_count", 0)),
        )
    console.print(table)
