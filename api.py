import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, File, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from config import Settings, configure_logging
from errors import ErrorKind, Failure, failure_response
from guard import check_upload
from inference import ModelHandle, ModelState, load_into, predict
from store import PostgresDocumentStore, PredictionStore

logger = logging.getLogger(__name__)


def create_app(settings=None, store=None, model_handle=None):
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    owns_store = store is None
    if owns_store:
        store = PredictionStore(PostgresDocumentStore(settings))
    if model_handle is None:
        model_handle = ModelHandle()

    @asynccontextmanager
    async def lifespan(app):
        load_task = None
        if model_handle.state is ModelState.PENDING:
            load_task = asyncio.create_task(load_into(model_handle, settings.model_path))

        if owns_store:
            try:
                await store.connect()
            except Exception:
                logger.exception("Could not connect to the prediction store")

        yield

        if load_task is not None and not load_task.done():
            load_task.cancel()
        if owns_store:
            await store.close()

    app = FastAPI(title="Cancer Prediction API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.store = store
    app.state.model_handle = model_handle

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request, exc):
        return failure_response(Failure(ErrorKind.INVALID_INPUT))

    @app.post("/predict")
    async def predict_image(image: Optional[UploadFile] = File(None)):
        image_bytes = await check_upload(image)
        if isinstance(image_bytes, Failure):
            return failure_response(image_bytes)

        prediction = await run_in_threadpool(predict, model_handle, image_bytes)
        if isinstance(prediction, Failure):
            return failure_response(prediction)

        record = await store.save(prediction.result, prediction.suggestion)
        if isinstance(record, Failure):
            return failure_response(record)

        return {
            "status": "success",
            "message": "Model is predicted successfully",
            "data": record.to_document(),
        }

    @app.get("/predict/histories")
    async def prediction_histories():
        records = await store.list_all()
        if isinstance(records, Failure):
            return failure_response(records)

        return {
            "status": "success",
            "data": [{"id": record.id, "history": record.to_document()} for record in records],
        }

    return app


app = create_app()


def main():
    settings = Settings.from_env()
    logger.info("Server is running on http://%s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
