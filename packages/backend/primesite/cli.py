from __future__ import annotations

import argparse
import asyncio
import json
from typing import Optional, Sequence

from .auth import AuthContext, SessionStore
from .config import get_settings
from .db.migrations import init_db, init_drafts_db
from .exceptions import TrackedError
from .executor.detached import get_detached_tasks
from .log import setup_logging
from .services.analytics import PurchaseTracker
from .services.deployment import DeploymentClient
from .services.dual_write import DualWriteCoordinator
from .services.image_upload import ImageUploadPipeline
from .services.payments import PaymentClient
from .services.publish import PublishKind, PublishRun, PublishSequencer
from .services.reconciliation import ReconciliationResolver


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="primesite", description="Manage PrimeSite drafts and deployments.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    login = subparsers.add_parser("login", help="Remember the signed-in account for later commands")
    login.add_argument("--user-id", required=True)
    login.add_argument("--email")

    subparsers.add_parser("logout", help="Forget the stored session")
    subparsers.add_parser("whoami", help="Show the stored session")

    sites = subparsers.add_parser("sites", help="List sites, merging local drafts with the account copy")
    sites.add_argument("--json", action="store_true", help="Print full records as JSON")

    publish = subparsers.add_parser("publish", help="Republish a locally stored site")
    publish.add_argument("site_id")
    return parser


def _render_site_line(site) -> str:
    url = site.deployed_url or "-"
    return f"{site.id}\t{site.data.shop_name}\t{site.deployment_status.value}\t{url}\t{site.last_saved}"


async def _list_sites(auth: AuthContext, as_json: bool) -> int:
    resolver = ReconciliationResolver(DualWriteCoordinator())
    sites = await resolver.load_all(auth)
    await get_detached_tasks().drain(timeout=get_settings().shutdown_drain_seconds)
    if as_json:
        print(json.dumps([site.to_payload() for site in sites], indent=2))
    elif not sites:
        print("No sites yet.")
    else:
        for site in sites:
            print(_render_site_line(site))
    return 0


async def _watch(run: PublishRun, interval: float) -> None:
    last = None
    while not run.is_finished:
        state = (run.phase, run.countdown)
        if state != last:
            suffix = f" ({run.countdown}s)" if run.countdown is not None else ""
            print(f"{run.phase.value}{suffix}")
            last = state
        await asyncio.sleep(interval)


async def _publish(auth: AuthContext, site_id: str) -> int:
    coordinator = DualWriteCoordinator()
    site = await coordinator.local.get(site_id)
    if site is None:
        print(f"Site not found in local drafts: {site_id}")
        return 1
    sequencer = PublishSequencer(
        coordinator,
        ImageUploadPipeline(),
        DeploymentClient(),
        PaymentClient(),
        PurchaseTracker(),
    )
    run = PublishRun(site_id=site.id, kind=PublishKind.REPUBLISH)
    watcher = asyncio.ensure_future(_watch(run, min(0.25, get_settings().publish_tick_seconds)))
    outcome = await sequencer.republish(site, auth, run)
    await watcher
    await get_detached_tasks().drain(timeout=get_settings().shutdown_drain_seconds)
    if outcome.error:
        print(f"Publish failed: {outcome.error}")
        return 1
    print(f"Published: {outcome.url}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_dir, settings.log_level)
    store = SessionStore()

    if args.command == "login":
        store.persist(AuthContext(user_id=args.user_id, email=args.email))
        print(f"Signed in as {args.email or args.user_id}")
        return 0
    if args.command == "logout":
        store.sign_out()
        print("Signed out")
        return 0

    auth = store.restore()
    if args.command == "whoami":
        print(auth.email or auth.user_id if auth.is_authenticated else "Not signed in")
        return 0

    init_drafts_db()
    if auth.is_authenticated:
        init_db()
    try:
        if args.command == "sites":
            return asyncio.run(_list_sites(auth, args.json))
        if args.command == "publish":
            if not auth.is_authenticated:
                print("Sign in required to republish (primesite login --user-id ...)")
                return 1
            return asyncio.run(_publish(auth, args.site_id))
    except TrackedError as exc:
        print(f"Error: {exc.with_trace()}")
        return 1
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
