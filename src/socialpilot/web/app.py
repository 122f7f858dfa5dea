"""FastAPI application exposing the orchestrator to the review UI."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from socialpilot import __version__, http
from socialpilot.errors import SocialPilotError
from socialpilot.generation.models import StyleConfig
from socialpilot.growth import engagement_score, predict_viral_potential
from socialpilot.orchestrator import Orchestrator
from socialpilot.store.models import InvalidTransition, Post
from socialpilot.web.schemas import (
    FetchContentRequest,
    GeneratePostsRequest,
    PredictViralRequest,
    PublishRequest,
    SchedulePostRequest,
)

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, **extra: object) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, **extra},
    )


def _post_json(post: Post) -> dict[str, object]:
    return post.model_dump(mode="json")


def create_app(orchestrator: Orchestrator) -> FastAPI:
    """Build the API around one long-lived orchestrator."""
    app = FastAPI(title="socialpilot", version=__version__)
    app.state.orchestrator = orchestrator
    store = orchestrator.store

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(SocialPilotError)
    async def _pipeline_error(request: Request, exc: SocialPilotError) -> JSONResponse:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.exception_handler(http.HTTPError)
    async def _upstream_error(request: Request, exc: http.HTTPError) -> JSONResponse:
        logger.error("%s %s upstream failure: %s", request.method, request.url.path, exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("%s %s crashed", request.method, request.url.path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.get("/api/health")
    async def health() -> dict[str, object]:
        return {"success": True, "status": "ok", "version": __version__}

    @app.post("/api/fetch-content")
    async def fetch_content(body: FetchContentRequest | None = None) -> dict[str, object]:
        topics = body.topics if body and body.topics else None
        items = await orchestrator.fetch_content(topics)
        return {
            "success": True,
            "content": [item.model_dump(mode="json") for item in items],
            "count": len(items),
        }

    @app.post("/api/generate-posts")
    async def generate_posts(body: GeneratePostsRequest) -> JSONResponse:
        content = body.content.to_item()
        if not content.has_text:
            return _error(status.HTTP_400_BAD_REQUEST, "content needs a title and a body")
        defaults = orchestrator.default_style()
        style = StyleConfig(
            provider=body.ai_provider or defaults.provider,
            tone=body.tone or defaults.tone,
        )
        post = await orchestrator.generate_for(content, style, prefer_thread=body.use_thread)
        return JSONResponse(
            {
                "success": True,
                "post": _post_json(post),
                "image": post.image.model_dump(mode="json") if post.image else None,
            }
        )

    @app.get("/api/posts/pending")
    async def pending_posts(limit: int = 50) -> dict[str, object]:
        return {"success": True, "posts": [_post_json(p) for p in store.pending(limit)]}

    @app.get("/api/posts")
    async def all_posts() -> dict[str, object]:
        return {"success": True, "posts": [_post_json(p) for p in store.list_all()]}

    @app.post("/api/post/{post_id}")
    async def publish_post(post_id: int, body: PublishRequest | None = None) -> JSONResponse:
        post = store.get(post_id)
        if post is None:
            return _error(status.HTTP_404_NOT_FOUND, "Post not found")

        body = body or PublishRequest()
        platforms = body.platforms or orchestrator.platforms
        already = [p for p in platforms if store.has_outcome(post_id, p)]
        if already:
            names = ", ".join(str(p) for p in already)
            return _error(status.HTTP_409_CONFLICT, f"Post {post_id} was already published to {names}")

        try:
            results = await orchestrator.approve_and_publish(
                post_id, platforms, body.edited_content
            )
        except InvalidTransition as exc:
            return _error(status.HTTP_400_BAD_REQUEST, str(exc))

        payload = {str(platform): result.to_dict() for platform, result in results.items()}
        if not any(result.ok for result in results.values()):
            message = "; ".join(str(result.error) for result in results.values())
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, message, results=payload)
        return JSONResponse({"success": True, "results": payload})

    @app.delete("/api/post/{post_id}")
    async def delete_post(post_id: int) -> JSONResponse:
        if not store.delete(post_id):
            return _error(status.HTTP_404_NOT_FOUND, "Post not found")
        return JSONResponse({"success": True, "message": "Post deleted"})

    @app.post("/api/post/{post_id}/regenerate-image")
    async def regenerate_image(post_id: int) -> JSONResponse:
        if store.get(post_id) is None:
            return _error(status.HTTP_404_NOT_FOUND, "Post not found")
        image = await orchestrator.regenerate_image(post_id)
        if image is None:
            return _error(status.HTTP_404_NOT_FOUND, "No images found")
        return JSONResponse({"success": True, "image": image.model_dump(mode="json")})

    @app.post("/api/schedule-post")
    async def schedule_post(body: SchedulePostRequest) -> JSONResponse:
        if store.get(body.post_id) is None:
            return _error(status.HTTP_404_NOT_FOUND, "Post not found")
        orchestrator.schedule_post(body.post_id, body.scheduled_time)
        message = "Post scheduled successfully" if body.scheduled_time else "Schedule cleared"
        return JSONResponse(
            {"success": True, "message": message, "post": _post_json(store.get(body.post_id))}
        )

    @app.get("/api/analytics")
    async def analytics() -> dict[str, object]:
        return {"success": True, "stats": store.counts()}

    @app.get("/api/quota")
    async def quota() -> dict[str, object]:
        report = orchestrator.quota()
        return {
            "success": True,
            "quota": {
                str(platform): entry.model_dump(mode="json", by_alias=True, exclude={"platform"})
                for platform, entry in report.items()
            },
        }

    @app.get("/api/growth/recommendations")
    async def growth_recommendations() -> dict[str, object]:
        recs = orchestrator.growth.recommendations()
        return {"success": True, "recommendations": [r.model_dump() for r in recs]}

    @app.get("/api/growth/schedule")
    async def growth_schedule(
        posts_per_day: int = Query(5, alias="postsPerDay"),
    ) -> dict[str, object]:
        return {"success": True, "schedule": orchestrator.growth.optimal_schedule(posts_per_day)}

    @app.get("/api/growth/metrics")
    async def growth_metrics(days: int = 30) -> dict[str, object]:
        return {"success": True, **orchestrator.growth.growth_metrics(days)}

    @app.get("/api/growth/patterns")
    async def growth_patterns() -> dict[str, object]:
        patterns = orchestrator.growth.winning_patterns()
        return {"success": True, "patterns": patterns.model_dump()}

    @app.get("/api/growth/engagement-score")
    async def growth_engagement(
        likes: int = 0, comments: int = 0, shares: int = 0, impressions: int = 0
    ) -> dict[str, object]:
        return {"success": True, **engagement_score(likes, comments, shares, impressions)}

    @app.post("/api/growth/predict-viral")
    async def growth_predict(body: PredictViralRequest) -> dict[str, object]:
        return {"success": True, "prediction": predict_viral_potential(body.text)}

    return app
