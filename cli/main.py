#!/usr/bin/env python3
"""
BroDesk CLI - Main Entry Point

Usage:
    brodesk register --role student ...   # Request an account (pending approval)
    brodesk login                         # Sign in (approved accounts only)
    brodesk my-complaints                 # Student: your complaints
    brodesk assigned                      # Staff: complaints assigned to you
    brodesk admin-dashboard               # Admin: counts
    brodesk --help                        # Show help
"""

import argparse
import sys
from typing import Dict, List, Optional

from rich.console import Console
from rich.prompt import Prompt

from app.core.enums import AccountRole
from cli.client import APIError, BroDeskClient
from cli.config import CLIConfig
from cli.views import (
    ScreenGate,
    render_account,
    render_categories,
    render_complaints,
    render_notifications,
    render_staff,
    render_status_counts,
    render_users,
)

STUDENT = (AccountRole.STUDENT,)
STAFF = (AccountRole.STAFF,)
ADMIN = (AccountRole.ADMIN,)
STAFF_OR_ADMIN = (AccountRole.STAFF, AccountRole.ADMIN)
ANY_ROLE: tuple = ()


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI"""
    parser = argparse.ArgumentParser(
        prog="brodesk",
        description="BroDesk - complaint desk for students, staff and administrators",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  brodesk register --role student --email me@college.edu --name "A Student" --phone 9876543210
  brodesk login --email me@college.edu
  brodesk submit --title "Projector broken" --description "Room 101" --category infrastructure --priority high
  brodesk admin-users --status pending
  brodesk approve <user-id>
  brodesk assign <complaint-id> <staff-id>
        """
    )
    parser.add_argument("--api-url", help="API base URL (default: BRODESK_API_URL or http://localhost:8000/api/v1)")

    sub = parser.add_subparsers(dest="command", metavar="command")

    register = sub.add_parser("register", help="Request a student or staff account")
    register.add_argument("--role", choices=["student", "staff"], default="student")
    register.add_argument("--email", required=True)
    register.add_argument("--password", help="Prompted for when omitted")
    register.add_argument("--name", dest="full_name", required=True)
    register.add_argument("--phone", dest="phone_number", required=True)
    register.add_argument("--batch-type", choices=["Remote", "Offline"])
    register.add_argument("--batch-number")
    register.add_argument("--course")
    register.add_argument("--student-id", dest="student_number")
    register.add_argument("--category", help="Staff: complaint category handled")
    register.add_argument("--specialization")

    login = sub.add_parser("login", help="Sign in")
    login.add_argument("--email")
    login.add_argument("--password", help="Prompted for when omitted")

    sub.add_parser("logout", help="Sign out")
    sub.add_parser("whoami", help="Show the signed-in account")
    sub.add_parser("notifications", help="List your notifications")
    sub.add_parser("categories", help="List complaint categories")

    submit = sub.add_parser("submit", help="Student: submit a complaint")
    submit.add_argument("--title", required=True)
    submit.add_argument("--description", required=True)
    submit.add_argument("--category", required=True)
    submit.add_argument("--priority", choices=["low", "medium", "high"], default="medium")

    sub.add_parser("my-complaints", help="Student: list your complaints")
    sub.add_parser("assigned", help="Staff: list complaints assigned to you")

    set_status = sub.add_parser("set-status", help="Staff/Admin: move a complaint forward")
    set_status.add_argument("complaint_id")
    set_status.add_argument("status", choices=["in_progress", "resolved"])

    sub.add_parser("admin-dashboard", help="Admin: dashboard counts")

    users = sub.add_parser("admin-users", help="Admin: list accounts")
    users.add_argument("--status", choices=["pending", "approved", "rejected"])

    approve = sub.add_parser("approve", help="Admin: approve a pending account")
    approve.add_argument("user_id")
    reject = sub.add_parser("reject", help="Admin: reject a pending account")
    reject.add_argument("user_id")

    sub.add_parser("admin-staff", help="Admin: staff with assigned complaint counts")
    sub.add_parser("admin-complaints", help="Admin: all complaints")

    assign = sub.add_parser("assign", help="Admin: assign a complaint to a staff member")
    assign.add_argument("complaint_id")
    assign.add_argument("staff_id")

    add_category = sub.add_parser("add-category", help="Admin: create a category")
    add_category.add_argument("name")
    add_category.add_argument("--description")

    delete_category = sub.add_parser("delete-category", help="Admin: delete an unused category")
    delete_category.add_argument("category_id")

    return parser


# ==================== Command handlers ====================

def cmd_register(args, client: BroDeskClient, console: Console) -> int:
    password = args.password or Prompt.ask("Password", password=True)
    payload = {
        "role": args.role,
        "email": args.email,
        "password": password,
        "full_name": args.full_name,
        "phone_number": args.phone_number,
        "batch_type": args.batch_type,
        "batch_number": args.batch_number,
        "course": args.course,
        "student_number": args.student_number,
        "category": args.category,
        "specialization": args.specialization,
    }
    result = client.register(payload)
    console.print(f"[green]✓[/green] {result['message']}")
    return 0


def cmd_login(args, client: BroDeskClient, console: Console) -> int:
    email = args.email or Prompt.ask("Email")
    password = args.password or Prompt.ask("Password", password=True)
    user = client.login(email, password)
    console.print(f"[green]✓[/green] Welcome, {user['full_name']} ({user.get('role')})")
    return 0


def cmd_logout(args, client: BroDeskClient, console: Console) -> int:
    problem = client.logout()
    if problem:
        console.print(f"[yellow]Server sign-out failed: {problem}[/yellow]")
    console.print("[green]✓[/green] Signed out")
    return 0


def cmd_whoami(args, client: BroDeskClient, console: Console) -> int:
    render_account(console, client.me())
    return 0


def cmd_notifications(args, client: BroDeskClient, console: Console) -> int:
    render_notifications(console, client.notifications())
    return 0


def cmd_categories(args, client: BroDeskClient, console: Console) -> int:
    render_categories(console, client.categories())
    return 0


def cmd_submit(args, client: BroDeskClient, console: Console) -> int:
    complaint = client.submit_complaint(args.title, args.description, args.category, args.priority)
    console.print(f"[green]✓[/green] Complaint submitted: {complaint['id']}")
    return 0


def cmd_my_complaints(args, client: BroDeskClient, console: Console) -> int:
    render_complaints(console, client.my_complaints(), "My Complaints", show_assignee=True)
    return 0


def cmd_assigned(args, client: BroDeskClient, console: Console) -> int:
    render_status_counts(console, client.assigned_stats(), "Assigned to me")
    render_complaints(console, client.assigned_complaints(), "Assigned Complaints", show_student=True)
    return 0


def cmd_set_status(args, client: BroDeskClient, console: Console) -> int:
    complaint = client.set_status(args.complaint_id, args.status)
    console.print(f"[green]✓[/green] Complaint {complaint['id']} is now {complaint['status'].replace('_', ' ')}")
    return 0


def cmd_admin_dashboard(args, client: BroDeskClient, console: Console) -> int:
    render_status_counts(console, client.dashboard_stats(), "Dashboard")
    return 0


def cmd_admin_users(args, client: BroDeskClient, console: Console) -> int:
    result = client.list_users(args.status)
    title = f"Users ({args.status})" if args.status else "Users"
    render_users(console, result["items"], title)
    return 0


def _print_decision(console: Console, result: Dict) -> None:
    if result["changed"]:
        console.print(f"[green]✓[/green] {result['message']}: {result['account']['email']}")
    else:
        console.print(f"[yellow]{result['message']}[/yellow]")


def cmd_approve(args, client: BroDeskClient, console: Console) -> int:
    _print_decision(console, client.approve(args.user_id))
    return 0


def cmd_reject(args, client: BroDeskClient, console: Console) -> int:
    _print_decision(console, client.reject(args.user_id))
    return 0


def cmd_admin_staff(args, client: BroDeskClient, console: Console) -> int:
    render_staff(console, client.list_staff()["items"])
    return 0


def cmd_admin_complaints(args, client: BroDeskClient, console: Console) -> int:
    render_complaints(console, client.all_complaints(), "All Complaints", show_student=True, show_assignee=True)
    return 0


def cmd_assign(args, client: BroDeskClient, console: Console) -> int:
    complaint = client.assign(args.complaint_id, args.staff_id)
    console.print(f"[green]✓[/green] Complaint {complaint['id']} assigned to {complaint.get('assignee_name')}")
    return 0


def cmd_add_category(args, client: BroDeskClient, console: Console) -> int:
    category = client.add_category(args.name, args.description)
    console.print(f"[green]✓[/green] Category created: {category['name']}")
    return 0


def cmd_delete_category(args, client: BroDeskClient, console: Console) -> int:
    client.delete_category(args.category_id)
    console.print("[green]✓[/green] Category deleted")
    return 0


# command -> (handler, roles allowed to open it; None means no gate)
COMMANDS: Dict[str, tuple] = {
    "register": (cmd_register, None),
    "login": (cmd_login, None),
    "logout": (cmd_logout, None),
    "whoami": (cmd_whoami, ANY_ROLE),
    "notifications": (cmd_notifications, ANY_ROLE),
    "categories": (cmd_categories, ANY_ROLE),
    "submit": (cmd_submit, STUDENT),
    "my-complaints": (cmd_my_complaints, STUDENT),
    "assigned": (cmd_assigned, STAFF),
    "set-status": (cmd_set_status, STAFF_OR_ADMIN),
    "admin-dashboard": (cmd_admin_dashboard, ADMIN),
    "admin-users": (cmd_admin_users, ADMIN),
    "approve": (cmd_approve, ADMIN),
    "reject": (cmd_reject, ADMIN),
    "admin-staff": (cmd_admin_staff, ADMIN),
    "admin-complaints": (cmd_admin_complaints, ADMIN),
    "assign": (cmd_assign, ADMIN),
    "add-category": (cmd_add_category, ADMIN),
    "delete-category": (cmd_delete_category, ADMIN),
}


def run_command(args, client: BroDeskClient, console: Console) -> int:
    handler, roles = COMMANDS[args.command]

    if roles is not None:
        gate = ScreenGate(client, console)
        try:
            if not gate.allows(roles):
                return 2
        finally:
            gate.close()

    try:
        return handler(args, client, console)
    except APIError as e:
        console.print(f"[red]{e.message}[/red]")
        return 1


def main(argv: Optional[List[str]] = None, client: Optional[BroDeskClient] = None,
         console: Optional[Console] = None) -> int:
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)
    console = console or Console()

    if not args.command:
        parser.print_help()
        return 0

    owns_client = client is None
    if owns_client:
        config = CLIConfig.load_default()
        if args.api_url:
            config.api_base_url = args.api_url.rstrip("/")
        client = BroDeskClient(config)

    try:
        return run_command(args, client, console)
    finally:
        if owns_client:
            client.close()


if __name__ == "__main__":
    sys.exit(main())
