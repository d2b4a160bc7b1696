import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from config import Settings
from database import MongoStore, doc_to_dict
from logger import get_logger
from schemas import MalformedPayload, OrderValidationError, decode_form_fields, parse_order
from uploads import AttachmentStore, ImageTooLarge

logger = get_logger(__name__)

ORDER_COLLECTION = "order"

router = APIRouter()


# ---------- Dependencies ----------

def get_store(request: Request) -> MongoStore:
    return request.app.state.store


def get_attachments(request: Request) -> AttachmentStore:
    return request.app.state.attachments


def error_response(status_code: int, message: str, error: Optional[str] = None) -> JSONResponse:
    content = {"message": message}
    if error is not None:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content)


# ---------- Basic Routes ----------

@router.get("/")
def read_root():
    return {"message": "Checkout Backend Running"}


@router.get("/health")
def health(store: MongoStore = Depends(get_store)):
    checks = {}
    try:
        store.ping()
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    all_ok = all(v == "ok" for v in checks.values())
    return {"status": "healthy" if all_ok else "degraded", "checks": checks}


# ---------- Order Routes ----------

@router.post("/api/checkout", status_code=201)
async def checkout(
    request: Request,
    store: MongoStore = Depends(get_store),
    attachments: AttachmentStore = Depends(get_attachments),
):
    """
    Place an order.

    Accepts multipart form data (optional `image` file plus JSON-encoded
    `products` and `customer` fields) or a plain JSON body. The image is
    only written once the order fields have validated.
    """
    image = None
    try:
        if request.headers.get("content-type", "").startswith("application/json"):
            try:
                payload = await request.json()
            except ValueError:
                raise MalformedPayload("body is not valid JSON")
        else:
            form = await request.form()
            upload = form.get("image")
            image = await attachments.read_image(upload if isinstance(upload, UploadFile) else None)
            payload = decode_form_fields(form)
        order = parse_order(payload)
    except ImageTooLarge as e:
        logger.warning("Rejected oversized image", extra={"image": e.filename, "status": 413})
        return error_response(413, str(e))
    except OrderValidationError as e:
        logger.info("Rejected order: %s", e.message, extra={"kind": e.kind, "status": 400})
        return error_response(400, e.message)

    try:
        if image is not None:
            path = await run_in_threadpool(attachments.save, image, int(time.time() * 1000))
            order = order.with_image(path)
        order_id = await run_in_threadpool(store.create_document, ORDER_COLLECTION, order)
        saved = await run_in_threadpool(store.get_document, ORDER_COLLECTION, order_id)
    except Exception as e:
        logger.exception("Error placing order", extra={"status": 500})
        return error_response(500, "Failed to place order", str(e))

    logger.info("Order placed", extra={"order_id": order_id, "status": 201})
    return JSONResponse(
        status_code=201,
        content={"message": "Order placed successfully", "order": doc_to_dict(saved)},
    )


@router.get("/api/orders")
def list_orders(store: MongoStore = Depends(get_store)):
    """All orders in store order, for the admin page."""
    try:
        docs = store.get_documents(ORDER_COLLECTION)
    except Exception as e:
        logger.exception("Error fetching orders", extra={"status": 500})
        return error_response(500, "Failed to fetch orders", str(e))
    return [doc_to_dict(d) for d in docs]


# ---------- App ----------

def create_app(
    settings: Optional[Settings] = None,
    store: Optional[MongoStore] = None,
    attachments: Optional[AttachmentStore] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    store = store or MongoStore(settings.database_url, settings.database_name)
    attachments = attachments or AttachmentStore(settings.upload_dir)
    logger.setLevel(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        attachments.ensure_directory()
        store.open()
        logger.info(f"Connected to {settings.database_name}, uploads in {attachments.directory}")
        try:
            yield
        finally:
            store.close()
            logger.info("Store closed")

    app = FastAPI(title="Checkout API", lifespan=lifespan)
    app.state.store = store
    app.state.attachments = attachments

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    # directory is created in lifespan, before the first request
    app.mount(
        f"/{attachments.url_prefix}",
        StaticFiles(directory=attachments.directory, check_dir=False),
        name="uploads",
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=Settings.from_env().port)
