"""
Register the Neuro Synapse workflow and its task definitions with Orkes.

Usage: python scripts/register_conductor_defs.py [path/to/workflow.yaml]
"""
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv


def _setup_path():
    # Ensure repo root is on sys.path so `import src...` works
    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)
    load_dotenv(os.path.join(repo_root, ".env"))


async def register(path=None) -> int:
    from src.config import get_settings
    from src.neuro_synapse.conductor import OrkesConductorClient
    from src.neuro_synapse.errors import ConductorError
    from src.neuro_synapse.definitions import load_workflow_definition

    logger = logging.getLogger("register_conductor_defs")
    settings = get_settings()

    if settings.use_mock_orkes_client:
        logger.info("USE_MOCK_ORKES_CLIENT is true. Skipping actual registration with Orkes Cloud.")
        logger.info("This script is intended for REAL Orkes registration. Exiting.")
        return 0

    if not settings.orkes_credentials_present:
        logger.error("ORKES_SERVER_URL, ORKES_KEY_ID, or ORKES_KEY_SECRET environment variables are not set.")
        logger.error("Cannot register definitions with Orkes Cloud.")
        return 1

    client = OrkesConductorClient(settings.orkes_server_url, settings.orkes_key_id, settings.orkes_key_secret)
    logger.info("Orkes client initialized for registration.")
    try:
        workflow_def, task_defs = load_workflow_definition(path)
        logger.info("Registering/Updating workflow: %s", workflow_def.name)
        await client.metadata_resource.update_workflow_defs([workflow_def])
        logger.info("Workflow %s registered/updated successfully.", workflow_def.name)

        if task_defs:
            logger.info("Registering/Updating %d task definitions...", len(task_defs))
            await client.metadata_resource.register_task_defs(task_defs)
            logger.info("Task definitions registered/updated successfully: %s", [td.name for td in task_defs])
        else:
            logger.info("No separate task definitions found in YAML to register.")
        logger.info("All definitions processed.")
        return 0
    except ConductorError as e:
        logger.error("Error during Orkes definition registration: %s", e)
        if e.body:
            logger.error("Orkes API Response Error Body: %s", e.body)
        return 1
    except (OSError, ValueError) as e:
        logger.error("Error during Orkes definition registration: %s", e)
        return 1
    finally:
        await client.aclose()


def main() -> int:
    _setup_path()
    from src.logging_setup import setup_logging

    setup_logging()
    return asyncio.run(register(sys.argv[1] if len(sys.argv) > 1 else None))


if __name__ == "__main__":
    raise SystemExit(main())
