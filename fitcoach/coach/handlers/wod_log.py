"""Benchmark WOD logging. Lower time is better."""

from datetime import datetime, timezone

import structlog

from ...classifier.models import ClassificationResult, Intent
from ...storage.models import WodBenchmark, WodLog
from ..models import CoachResponse, UserContext, WodLogged
from .base import BaseHandler, HandlerDeps

logger = structlog.get_logger()


def format_wod_time(seconds: int) -> str:
    """225 -> "3:45"."""
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"


class WodLogHandler(BaseHandler):
    """Log a benchmark result and keep the best time per user."""

    name = "wod_log"
    intents = (Intent.WOD_LOG,)

    async def handle(
        self,
        message: str,
        classification: ClassificationResult,
        context: UserContext,
        deps: HandlerDeps,
    ) -> CoachResponse:
        extracted = classification.extracted_data
        if not extracted.wod_name:
            return CoachResponse(message="Which WOD did you do?", intent=Intent.WOD_LOG)

        wod = await deps.store.find_wod(extracted.wod_name)
        if not wod:
            return CoachResponse(
                message=(
                    f'I don\'t have "{extracted.wod_name}" in the WOD library. '
                    "Want to log a custom WOD?"
                ),
                intent=Intent.WOD_LOG,
                needs_confirmation=True,
                confirmation_data={"action": "custom_wod", "wod_name": extracted.wod_name},
            )

        time_seconds = int(extracted.wod_time) if extracted.wod_time else None
        log = WodLog(
            user_id=context.user_id,
            wod_id=wod.id,
            result_time_seconds=time_seconds,
            result_rounds=extracted.wod_rounds,
            result_reps=extracted.wod_reps,
            raw_input=message,
        )

        is_pr = False
        previous_best = None
        improvement = None
        async with deps.locks.hold(f"wod:{context.user_id}:{wod.id}"):
            await deps.store.insert_wod_log(log)
            existing = await deps.store.get_wod_benchmark(context.user_id, wod.id)
            best = existing.best_time_seconds if existing else None

            if time_seconds and (best is None or time_seconds < best):
                is_pr = True
                previous_best = best
                improvement = best - time_seconds if best is not None else None
                now = datetime.now(timezone.utc)
                await deps.store.save_wod_benchmark(
                    WodBenchmark(
                        user_id=context.user_id,
                        wod_id=wod.id,
                        wod_log_id=log.id,
                        best_time_seconds=time_seconds,
                        previous_best_time_seconds=previous_best,
                        improvement_seconds=improvement,
                        achieved_at=now,
                        updated_at=now,
                    )
                )

        logger.info(
            "WOD logged",
            user_id=context.user_id,
            wod_id=wod.id,
            time_seconds=time_seconds,
            is_pr=is_pr,
            improvement_seconds=improvement,
        )

        if time_seconds:
            result_text = format_wod_time(time_seconds)
        elif extracted.wod_rounds is not None:
            result_text = f"{extracted.wod_rounds} rounds + {extracted.wod_reps or 0} reps"
        else:
            result_text = "done"
        pr_text = " That's a new PR! " if is_pr else ". "

        return CoachResponse(
            message=f"{wod.name} logged: {result_text}{pr_text}Great work!",
            intent=Intent.WOD_LOG,
            wod_logged=WodLogged(
                wod_id=wod.id,
                wod_name=wod.name,
                log_id=log.id,
                is_pr=is_pr,
                time_seconds=time_seconds,
                rounds=extracted.wod_rounds,
                reps=extracted.wod_reps,
                previous_best_seconds=previous_best,
                improvement_seconds=improvement,
            ),
        )
