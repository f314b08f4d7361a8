"""Which clients may be offered a seat in a live session."""
from __future__ import annotations

from typing import Iterable

from fitstudio.assignment.types import ClientRecord, PackageInfo, normalize_id
from fitstudio.config import plan_templates


def package_matches_plan(package_name: str, plan_tag: str) -> bool:
    """Match a package name against a session plan tag.

    Case-insensitive substring match against the whitelist in
    ``plan_templates.plan_tag_package_names``; an unknown tag matches nothing.
    """
    required = plan_templates.plan_tag_package_names.get(plan_tag.strip().lower())
    if required is None:
        return False
    return required in package_name.lower()


def get_eligible_clients(
    clients: Iterable[ClientRecord],
    plan_tag: str | None = None,
    clients_in_any_session: Iterable[str] = (),
    clients_in_this_session: Iterable[str] = (),
) -> list[ClientRecord]:
    """Filter ``clients`` down to those who can be offered this session.

    A client qualifies when they have a package, the package matches
    ``plan_tag`` (or, with no tag, is neither empty nor the basic package),
    and they are not committed to another session. Clients already in this
    session are kept so callers can show them as assigned.
    """
    committed = {normalize_id(cid) for cid in clients_in_any_session}
    in_this_session = {normalize_id(cid) for cid in clients_in_this_session}

    eligible = []
    for client in clients:
        if client.package is None:
            continue

        client_id = normalize_id(client.id)
        if client_id not in in_this_session and client_id in committed:
            continue

        package_name = client.package.name or ""
        if plan_tag:
            if package_matches_plan(package_name, plan_tag):
                eligible.append(client)
        elif package_name and package_name != plan_templates.basic_package_name:
            eligible.append(client)
    return eligible


def live_session_packages(packages: Iterable[PackageInfo]) -> list[PackageInfo]:
    """Packages whose clients can join live group sessions at all."""
    return [
        package
        for package in packages
        if package.name
        and plan_templates.basic_package_name not in package.name
        and (package.live_group_training_access or package.live_sessions_per_month > 0)
    ]
