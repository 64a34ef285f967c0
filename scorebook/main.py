"""
Main entry point for the Scorebook platform.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from .config import configure_logging, load_config, resolve_backend_type
from .core.entities import Subject, subjects_from_payload, subjects_to_payload
from .core.enums import BackendType
from .core.exceptions import ScorebookException
from .core.roster import MasterRoster
from .core.session import Authenticator, SessionContext
from .core.interfaces import StorageBackend
from .persistence import (
    BackendFactory, DatabaseFactory, LocalKeyValueStore, SQLDocumentClient
)
from .services import GradebookService, SyncStore, build_seed_subject

logger = logging.getLogger(__name__)


class ScorebookPlatform:
    """Wires configuration, storage, session and services together."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self._config = load_config() if config is None else config
        self._local_store = None
        self._roster = None
        self._authenticator = None
        self._backend = None
        self._database = None
        self._session: Optional[SessionContext] = None
        self._store: Optional[SyncStore[List[Subject]]] = None
        self._service: Optional[GradebookService] = None

        self._initialize_platform()

    @property
    def config(self) -> Dict[str, Any]:
        return self._config

    @property
    def roster(self) -> MasterRoster:
        return self._roster

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def session(self) -> Optional[SessionContext]:
        return self._session

    @property
    def service(self) -> Optional[GradebookService]:
        return self._service

    def _initialize_platform(self):
        """Initialize local storage, roster and backend."""
        print("Initializing Scorebook platform...")

        self._local_store = LocalKeyValueStore(self._config.get('local_storage_path', 'scorebook_local.json'))
        self._authenticator = Authenticator(
            self._local_store,
            min_length=self._config.get('min_password_length', 4)
        )
        print("✓ Local storage initialized")

        roster_path = self._config.get('master_roster_path')
        self._roster = MasterRoster.from_file(roster_path) if roster_path else MasterRoster()
        print(f"✓ Master roster loaded: {len(self._roster)} entries")

        backend_type = resolve_backend_type(self._config)
        self._backend = self._create_backend(backend_type)
        print(f"✓ Storage backend initialized: {backend_type.value}")

    def _create_backend(self, backend_type: BackendType) -> StorageBackend:
        if backend_type is BackendType.LOCAL:
            return BackendFactory.create_backend(
                backend_type,
                store=self._local_store,
                namespace=self._config.get('local_namespace', 'scorebook_data')
            )
        if backend_type is BackendType.DOCUMENT:
            return BackendFactory.create_backend(
                backend_type,
                client=SQLDocumentClient(self.database()),
                collection=self._config.get('collection', 'gradebooks')
            )
        return BackendFactory.create_backend(
            backend_type,
            endpoint_url=self._config.get('endpoint_url'),
            timeout=self._config.get('endpoint_timeout', 15.0)
        )

    def database(self):
        """Get the document database, creating it on first use."""
        if self._database is None:
            db_type = self._config.get('database_type', 'sqlite')
            db_config = self._config.get('database_config') or {}
            self._database = DatabaseFactory.create_database(db_type, **db_config)
        return self._database

    def initial_subjects(self) -> List[Subject]:
        """Seed value shown before the first load completes."""
        seed = self._config.get('seed_subject')
        if not seed:
            return []
        return [build_seed_subject(
            self._roster,
            seed.get('name', 'Subject'),
            seed.get('code', ''),
            seed.get('class_labels', [])
        )]

    def login(self, password: str) -> GradebookService:
        """Open a session and build the store and service for it."""
        self._session = self._authenticator.login(password)
        self._store = SyncStore(
            self._backend,
            self._session,
            self.initial_subjects(),
            encode=subjects_to_payload,
            decode=subjects_from_payload,
            saving_indicator_hold=self._config.get('saving_indicator_hold')
        )
        self._service = GradebookService(self._store)
        logger.info("Session opened on %s backend", self._backend.backend_type.value)
        print("✓ Session opened")
        return self._service

    async def logout(self):
        """Flush in-flight writes and close the session."""
        if self._store is not None:
            await self._store.wait_for_pending()
        if self._session is not None:
            self._authenticator.logout(self._session)
        self._session = None
        self._store = None
        self._service = None
        print("✓ Session closed")

    def create_rest_app(self):
        """Build the REST API for the current session."""
        from .api.rest_api import ScorebookRestAPI

        if self._service is None:
            raise ScorebookException("Log in before starting the REST API", error_code="NO_SESSION")
        return ScorebookRestAPI(self._service, self._roster).app

    def create_endpoint_app(self):
        """Build the reference spreadsheet endpoint over the document database."""
        from .api.endpoint_app import SpreadsheetEndpointAPI

        return SpreadsheetEndpointAPI(SQLDocumentClient(self.database())).app

    async def run_demo(self):
        """Run a short demonstration against the configured backend."""
        print("Running Scorebook demonstration...")
        service = self._service
        result = await service.store.load()
        print(f"Load: {result.status.value}")

        subject = await service.create_subject("Mathematics", "MA101")
        section = await service.create_class(subject.id, "3/1")
        candidates = service.candidates(subject.id, section.id, self._roster)
        students = await service.import_students(subject.id, section.id, candidates[:3])
        for student in students:
            await service.update_score(subject.id, section.id, student.id, "midterm", "exam", "20")

        stats = service.statistics()
        print("\n=== Dashboard Statistics ===")
        print(f"Students: {stats.count}")
        print(f"Average grade point: {stats.average_grade_point:.2f}")
        print(f"Highest total: {stats.highest_total}")
        print("\n✓ Demo completed")


def main():
    """Main entry point."""
    import argparse

    import uvicorn

    parser = argparse.ArgumentParser(description="Scorebook Gradebook Platform")
    parser.add_argument("--config", type=str, help="Configuration file path")
    parser.add_argument("--password", type=str, help="Password that opens the gradebook")
    parser.add_argument("--demo", action="store_true", help="Run demo mode")
    parser.add_argument("--serve", choices=["api", "endpoint"], help="Serve the REST API or the spreadsheet endpoint")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Server host")
    parser.add_argument("--port", type=int, default=8000, help="Server port")

    args = parser.parse_args()

    try:
        config = load_config(args.config)
        configure_logging(config.get('log_level', 'INFO'))
        platform = ScorebookPlatform(config)

        if args.serve == "endpoint":
            uvicorn.run(platform.create_endpoint_app(), host=args.host, port=args.port, log_level="info")
            return

        if not args.password:
            parser.error("--password is required for --demo and --serve api")
        platform.login(args.password)

        if args.demo:
            async def demo():
                await platform.run_demo()
                await platform.logout()
            asyncio.run(demo())
        elif args.serve == "api":
            result = asyncio.run(platform.service.store.load())
            print(f"✓ Gradebook load: {result.status.value}")
            uvicorn.run(platform.create_rest_app(), host=args.host, port=args.port, log_level="info")
        else:
            parser.print_help()
    except ScorebookException as e:
        print(f"Error: {e.message}")
        raise SystemExit(1)
    except KeyboardInterrupt:
        print("\nShutting down...")


if __name__ == "__main__":
    main()
