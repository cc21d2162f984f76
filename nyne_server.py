import itertools

from aiohttp import web
from loguru import logger

JOB_KINDS = (
    "enrichment",
    "search",
    "interests",
    "articlesearch",
    "deep-research",
    "competitor-engagements",
    "interactions",
)

HTML_ERROR_PAGE = (
    "<html><head><title>502 Bad Gateway</title></head><body>"
    "<center><h1>502 Bad Gateway</h1></center>"
    "<p>The upstream server did not answer in time. "
    "Please retry the request in a few moments.</p>"
    "<hr><center>nginx</center></body></html>"
)


class NyneServer:
    """Local stand-in for the Nyne API.

    Each submitted job answers `pending_polls` in-flight polls before it
    reaches `final_status`. Every request is recorded in `requests`.
    """

    def __init__(
        self,
        api_key: str = "test-key",
        api_secret: str = "test-secret",
        pending_polls: int = 1,
        final_status: str = "completed",
    ):
        self.api_key = api_key
        self.api_secret = api_secret
        self.pending_polls = pending_polls
        self.final_status = final_status
        self.sync_kinds = set()
        self.html_error = False
        self.jobs = {}
        self.requests = []
        self._ids = itertools.count(1)
        self.runner = None
        self.app = web.Application()
        self.app.router.add_post("/person/{kind}", self.handle_submit)
        self.app.router.add_get("/person/{kind}", self.handle_poll)
        self.app.router.add_get("/usage", self.handle_usage)
        self.logger = logger

    async def _record(self, request):
        body = await request.json() if request.can_read_body else None
        self.requests.append(
            {
                "method": request.method,
                "path": request.path,
                "query": dict(request.query),
                "headers": dict(request.headers),
                "body": body,
            }
        )

    def _reject(self, request):
        if self.html_error:
            return web.Response(
                status=502,
                text=HTML_ERROR_PAGE,
                content_type="text/html",
            )
        key = request.headers.get("X-API-Key", "")
        secret = request.headers.get("X-API-Secret", "")
        if key != self.api_key or secret != self.api_secret:
            self.logger.info("Rejecting bad credentials")
            return web.json_response(
                {"error": f"invalid credentials key={key} secret={secret}"},
                status=401,
            )
        return None

    async def handle_submit(self, request):
        await self._record(request)
        kind = request.match_info["kind"]
        if kind not in JOB_KINDS:
            return web.json_response({"error": f"unknown kind {kind}"}, status=404)
        rejected = self._reject(request)
        if rejected is not None:
            return rejected

        body = self.requests[-1]["body"] or {}
        if kind in self.sync_kinds:
            self.logger.info(f"Resolving {kind} synchronously")
            return web.json_response(
                {"data": {"status": "completed", "result": {"echo": body}}}
            )

        request_id = f"r{next(self._ids)}"
        self.jobs[request_id] = {"kind": kind, "polls": 0, "body": body}
        self.logger.info(f"Queued {kind} job {request_id}")
        return web.json_response({"data": {"request_id": request_id, "status": "queued"}})

    async def handle_poll(self, request):
        await self._record(request)
        rejected = self._reject(request)
        if rejected is not None:
            return rejected

        job = self.jobs.get(request.query.get("request_id"))
        if job is None or job["kind"] != request.match_info["kind"]:
            return web.json_response({"error": "unknown request_id"}, status=404)

        job["polls"] += 1
        if job["polls"] <= self.pending_polls:
            self.logger.info(f"Returning processing status (poll {job['polls']})")
            return web.json_response({"data": {"status": "processing"}})

        self.logger.info(f"Returning {self.final_status} status")
        return web.json_response(
            {"data": {"status": self.final_status, "result": {"echo": job["body"]}}}
        )

    async def handle_usage(self, request):
        await self._record(request)
        rejected = self._reject(request)
        if rejected is not None:
            return rejected
        return web.json_response(
            {"data": {"credits_used": 42, **dict(request.query)}}
        )

    async def start(self, port: int = 8080):
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, "localhost", port)
        await site.start()
        self.logger.info(f"Server started on port {port}")
        return site

    async def stop(self):
        if self.runner is not None:
            await self.runner.cleanup()
            self.runner = None
