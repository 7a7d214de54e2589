import logging
import time

from sqlalchemy.orm import Session

from app.clients.openai_chat import complete
from app.config import get_settings
from app.errors import RecordClosed
from app.models.research import STATUS_COMPLETED, STATUS_FAILED, initial_stages
from app.services.cost import estimate_cost
from app.services.progress import advance, fail_stages, set_stage
from app.services.tags import tags_for_query

logger = logging.getLogger(__name__)

RESEARCH_SYSTEM_PROMPT = """You are a helpful assistant in a research app.

- Provide comprehensive, well-structured research on legitimate topics
- Include key facts, recent developments, and relevant insights
- Present information objectively without referring to yourself or mentioning any AI systems

IMPORTANT RESTRICTIONS:
- Refuse to answer anything that is hateful, sexual involving minors, self-harm, or illegal instructions
- If the user asks for anything outside normal research topics, politely state you cannot help \
with that request and suggest focusing on legitimate research topics instead
- Do not provide instructions for dangerous, harmful, or illegal activities"""

TAGS_SYSTEM_PROMPT = (
    "Generate 3-5 concise, single-word or short category tags for this research topic. "
    "Examples: Technology, Business, AI, Science, Finance, Health, etc. "
    "Return ONLY comma-separated tags, no explanations."
)

TITLE_SYSTEM_PROMPT = (
    "Generate a concise, descriptive title (max 8 words) for this research query. "
    "Return ONLY the title, no quotes or explanations."
)

ANALYZING_LABEL = "Analyzing your query..."
GENERATING_LABEL = "Generating research content..."
FINALIZING_LABEL = "Finalizing results..."
COMPLETED_LABEL = "Research completed"


def _clean_title(raw: str, query: str) -> str:
    title = raw.replace('"', "").replace("'", "").strip()
    return title or query


class ResearchRun:
    """One detached execution of the research pipeline for a single record.

    Every step writes through ``advance``; nothing is returned to the caller
    that admitted the request.
    """

    def __init__(self, db: Session, research_id: str, query: str, step_delay: float | None = None):
        self.db = db
        self.research_id = research_id
        self.query = query
        self.step_delay = get_settings().PROGRESS_STEP_DELAY if step_delay is None else step_delay
        self.stages = initial_stages()

    def _checkpoints(self, start: int, stop: int, label: str, final_label: str | None = None):
        for pct in range(start, stop + 1, 5):
            current = final_label if final_label and pct == stop else label
            advance(self.db, self.research_id, stages=self.stages, progress=pct, current_stage=current)
            if self.step_delay:
                time.sleep(self.step_delay)

    def _generate(self) -> dict:
        research = complete(RESEARCH_SYSTEM_PROMPT, self.query, temperature=0.7, max_tokens=2000)
        tags_reply = complete(TAGS_SYSTEM_PROMPT, self.query, temperature=0.3, max_tokens=30)
        title_reply = complete(TITLE_SYSTEM_PROMPT, self.query, temperature=0.5, max_tokens=20)

        usage = research.usage
        result = {
            "content": research.text,
            "title": _clean_title(title_reply.text, self.query),
            "cost": estimate_cost(usage.prompt_tokens, usage.completion_tokens, usage.total_tokens),
        }
        tags = tags_for_query(self.query, tags_reply.text)
        if tags is not None:
            result["tags"] = tags
        return result

    def run(self) -> str:
        """Drive the record to a terminal state. Returns the final status."""
        try:
            self.stages = set_stage(self.stages, 0, "in-progress")
            self._checkpoints(5, 20, ANALYZING_LABEL)

            self.stages = set_stage(self.stages, 0, "completed")
            self.stages = set_stage(self.stages, 1, "in-progress")
            self._checkpoints(25, 40, GENERATING_LABEL)

            result = self._generate()

            self.stages = set_stage(self.stages, 1, "completed")
            self.stages = set_stage(self.stages, 2, "in-progress")
            self._checkpoints(45, 80, FINALIZING_LABEL)

            advance(
                self.db,
                self.research_id,
                stages=self.stages,
                progress=85,
                current_stage=FINALIZING_LABEL,
                **result,
            )
            self._checkpoints(90, 100, FINALIZING_LABEL, final_label=COMPLETED_LABEL)

            self.stages = set_stage(self.stages, 2, "completed")
            advance(
                self.db,
                self.research_id,
                stages=self.stages,
                status=STATUS_COMPLETED,
                progress=100,
                current_stage=COMPLETED_LABEL,
            )
            logger.info("Research %s completed: %s", self.research_id, result["title"])
            return STATUS_COMPLETED

        except RecordClosed:
            logger.warning("Research %s was closed while running, abandoning run", self.research_id)
            return STATUS_FAILED
        except Exception as e:
            logger.exception("Research %s failed", self.research_id)
            self._record_failure(str(e))
            return STATUS_FAILED

    def _record_failure(self, message: str) -> None:
        # Single best-effort write; if it fails the record stays "running"
        # until the reconciliation sweep picks it up.
        try:
            self.db.rollback()
            advance(
                self.db,
                self.research_id,
                stages=fail_stages(self.stages),
                status=STATUS_FAILED,
                progress=0,
                current_stage=f"Error: {message}",
            )
        except Exception:
            logger.exception("Failed to record failure for research %s", self.research_id)


def run_research(db: Session, research_id: str, query: str, step_delay: float | None = None) -> str:
    return ResearchRun(db, research_id, query, step_delay=step_delay).run()
