"""
Celery tasks for scheduled boundary monitoring.
"""
import logging
import uuid
from typing import Any, Dict, List

from app.database.session import get_db_session
from app.logging_config import run_id_var
from app.repositories.unit_of_work import SqlUnitOfWork
from app.services.boundary_intelligence_service import BoundaryIntelligenceService
from app.services.config_service import config_service
from worker.celery_app import celery_app

logger = logging.getLogger("worker.boundary_tasks")


def _monitor(assignment_id: str) -> Dict[str, Any]:
    with get_db_session() as db:
        service = BoundaryIntelligenceService.from_session(db)
        proposals = service.monitor_and_propose(assignment_id)
        return {
            "status": "success",
            "assignment_id": assignment_id,
            "proposals_created": len(proposals),
            "proposal_ids": [p.id for p in proposals],
        }


@celery_app.task(bind=True, name="boundaries.monitor_assignment")
def monitor_assignment(self, assignment_id: str) -> Dict[str, Any]:
    """
    Run pattern detection for one assignment and submit gated proposals.

    Args:
        assignment_id: Assignment to monitor

    Returns:
        Dictionary with the created proposal IDs
    """
    token = run_id_var.set(str(uuid.uuid4()))
    logger.info(f"Starting boundary monitoring for assignment {assignment_id}")

    try:
        result = _monitor(assignment_id)
        logger.info(f"Boundary monitoring completed for {assignment_id}: {result['proposals_created']} proposals")
        return result

    except Exception as e:
        logger.error(f"Error monitoring assignment {assignment_id}: {e}")
        return {
            "status": "error",
            "assignment_id": assignment_id,
            "error": str(e),
        }
    finally:
        run_id_var.reset(token)


@celery_app.task(bind=True, name="boundaries.monitor_active_assignments")
def monitor_active_assignments(self) -> Dict[str, Any]:
    """
    Monitor every assignment whose due date has not passed.

    A failure on one assignment is logged and does not stop the others.
    """
    token = run_id_var.set(str(uuid.uuid4()))
    logger.info("Starting scheduled boundary monitoring")

    try:
        with get_db_session() as db:
            assignment_ids = [a.id for a in SqlUnitOfWork(db).assignments.list_open(config_service.now())]

        proposals_created = 0
        failed: List[Dict[str, str]] = []
        for assignment_id in assignment_ids:
            try:
                proposals_created += _monitor(assignment_id)["proposals_created"]
            except Exception as e:
                logger.error(f"Error monitoring assignment {assignment_id}: {e}")
                failed.append({"assignment_id": assignment_id, "error": str(e)})

        logger.info(
            f"Scheduled monitoring completed: {len(assignment_ids)} assignments, "
            f"{proposals_created} proposals, {len(failed)} failures"
        )
        return {
            "status": "success",
            "assignments_checked": len(assignment_ids),
            "proposals_created": proposals_created,
            "failed": failed,
        }

    except Exception as e:
        logger.error(f"Error in scheduled boundary monitoring: {e}")
        return {
            "status": "error",
            "error": str(e),
        }
    finally:
        run_id_var.reset(token)
