import io

import numpy as np
import pytest
import torch
import torch.nn as nn
from fastapi.testclient import TestClient
from PIL import Image

from api import create_app
from config import Settings
from inference import ModelHandle
from store import PredictionStore


class ConstantModel(nn.Module):
    def __init__(self, score):
        super(ConstantModel, self).__init__()
        self.score = score
        self.inputs = []

    def forward(self, x):
        self.inputs.append(x)
        return torch.full((x.shape[0], 1), self.score)


class BrokenModel(nn.Module):
    def forward(self, x):
        raise RuntimeError("forward pass exploded")


class MemoryDocumentStore:
    def __init__(self):
        self.collections = {}
        self.fail = False
        self.next_id = 0

    async def create_document(self, collection, data):
        if self.fail:
            raise ConnectionError("store is down")
        self.next_id += 1
        doc_id = f"doc{self.next_id}"
        self.collections.setdefault(collection, {})[doc_id] = dict(data, id=doc_id)
        return doc_id

    async def list_documents(self, collection):
        if self.fail:
            raise ConnectionError("store is down")
        return [(doc_id, dict(data)) for doc_id, data in self.collections.get(collection, {}).items()]

    def count(self, collection="predictions"):
        return len(self.collections.get(collection, {}))


def image_bytes(size=(64, 48), color=(200, 120, 80), fmt="PNG"):
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def noise_png(width, height):
    pixels = np.random.default_rng(0).integers(0, 256, size=(height, width, 3), dtype=np.uint8)
    buffer = io.BytesIO()
    Image.fromarray(pixels).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture(scope="session")
def huge_png():
    buffer = io.BytesIO()
    Image.new("L", (8000, 8000), 90).save(buffer, format="PNG", optimize=True)
    return buffer.getvalue()


@pytest.fixture
def documents():
    return MemoryDocumentStore()


@pytest.fixture
def make_client(documents):
    def factory(model_handle):
        app = create_app(
            settings=Settings(),
            store=PredictionStore(documents),
            model_handle=model_handle,
        )
        return TestClient(app)
    return factory


@pytest.fixture
def client(make_client):
    return make_client(ModelHandle.ready(ConstantModel(0.2)))
