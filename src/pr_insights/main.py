"""Application orchestration for the ``pr-insights`` command."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from .api_client import ApiListMembership, ApiRepoSearch, InsightsApiClient
from .cli import parse_args
from .config import Config, load_config
from .errors import (
    ApiError,
    ConfigurationError,
    DataValidationError,
    NotFoundError,
    ValidationError,
)
from .models import ContributorCohort, FilterCriteria, PageOptions, WindowOptions
from .report import (
    generate_contributors_report,
    generate_histogram_report,
    generate_listing_report,
    generate_stats_report,
    generate_velocity_report,
)
from .service import PullRequestEventsService
from .source import InMemoryEventSource, load_events

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_INVALID = 2
EXIT_NOT_FOUND = 3
EXIT_API = 4
EXIT_DATA = 5


def _describe(criteria: FilterCriteria) -> str:
    parts = []
    if criteria.repos:
        parts.append(f"repos={','.join(criteria.repos)}")
    if criteria.repo_ids:
        parts.append(f"repo_ids={','.join(criteria.repo_ids)}")
    if criteria.contributor:
        parts.append(f"contributor={criteria.contributor}")
    if criteria.topic:
        parts.append(f"topic={criteria.topic}")
    if criteria.filter:
        parts.append(f"filter={criteria.filter}")
    if criteria.list_id:
        parts.append(f"list={criteria.list_id}")
    if criteria.status:
        parts.append(f"status={criteria.status}")
    return f"Scope: {' '.join(parts) if parts else 'all events'}"


def build_service(args: argparse.Namespace, criteria: FilterCriteria, config: Config) -> PullRequestEventsService:
    """Load events and wire collaborators needed by ``criteria``."""
    repo_search: Optional[ApiRepoSearch] = None
    list_membership: Optional[ApiListMembership] = None

    if criteria.topic or criteria.filter or criteria.list_id:
        client = InsightsApiClient(config=config)
        repo_search = ApiRepoSearch(client)
        list_membership = ApiListMembership(client)

    events = load_events(args.events)
    return PullRequestEventsService(
        InMemoryEventSource(events),
        repo_search=repo_search,
        list_membership=list_membership,
    )


def run_command(
    service: PullRequestEventsService,
    args: argparse.Namespace,
    criteria: FilterCriteria,
    config: Config,
) -> str:
    """Run the selected query and return the rendered report."""
    window_options = WindowOptions(range_days=config.range_days, prev_days_start_date=config.prev_days)
    title = _describe(criteria)

    if args.command == "list":
        page = service.list_pull_request_state(
            criteria,
            window_options=window_options,
            order=args.order,
            page=PageOptions(skip=args.skip, limit=args.limit),
        )
        return generate_listing_report(title, page)

    if args.command == "histogram":
        buckets = service.histogram(
            criteria,
            window_options=window_options,
            width_days=config.width,
            order=args.order,
            dense=args.dense,
        )
        return generate_histogram_report(title, buckets)

    if args.command == "velocity":
        velocity_days = service.velocity(criteria, window_options=window_options)
        return generate_velocity_report(title, velocity_days, config.range_days)

    if args.command == "stats":
        if not criteria.repos or len(criteria.repos) != 1:
            raise ValidationError("stats requires exactly one --repo")
        stats = service.pr_stats_by_repo(criteria.repos[0], window_options=window_options)
        return generate_stats_report(criteria.repos[0], stats)

    if args.command == "authors":
        page = service.search_authors(
            criteria,
            window_options=window_options,
            order=args.order,
            page=PageOptions(skip=args.skip, limit=args.limit),
        )
        return generate_contributors_report(title, page)

    if args.command == "contributors":
        page = service.classify_contributors(
            criteria,
            window_options=window_options,
            cohort=ContributorCohort(args.cohort),
            page=PageOptions(skip=args.skip, limit=args.limit),
            order=args.order,
        )
        return generate_contributors_report(f"{title} cohort={args.cohort}", page)

    raise ValidationError(f"Unknown command '{args.command}'")


def orchestrate_insights() -> int:
    """Parse arguments, run the requested query, print the report, and map errors to exit codes."""
    try:
        args = parse_args()
        if args.verbose:
            logging.basicConfig(level=logging.DEBUG)

        config = load_config(
            range_days=args.range,
            prev_days=args.prev_days,
            width=getattr(args, "width", 1),
            api_base_url=args.api_url,
        )
        criteria = FilterCriteria.from_query(
            contributor=args.contributor,
            repo=args.repo,
            repo_ids=args.repo_ids,
            topic=args.topic,
            filter=args.filter,
            list_id=args.list_id,
            status=args.status,
            distinct_authors=getattr(args, "distinct_authors", False),
        )

        service = build_service(args, criteria, config)
        print(run_command(service, args, criteria, config))
        return EXIT_OK
    except (ConfigurationError, ValidationError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_INVALID
    except NotFoundError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except ApiError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_API
    except DataValidationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_DATA
    except Exception as exc:
        logger.debug("Unexpected error while running insights query", exc_info=True)
        print(f"ERROR: Unexpected error: {exc}", file=sys.stderr)
        return EXIT_UNEXPECTED


def main() -> None:
    raise SystemExit(orchestrate_insights())


if __name__ == "__main__":
    main()
