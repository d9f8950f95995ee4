import copy
import json
from datetime import datetime

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker

from tpos_sync.catalog.variant_models import (
    Attribute,
    AttributeValue,
    Credential,
    SyncedProductRecord,
)
from tpos_sync.db import init_db, make_engine
from tpos_sync.store import SqlCatalogStore
from tpos_sync.tpos import TposClient

COLOR_ATTR = Attribute(name="Màu", remote_id=3, code="Mau", sequence=2, id=2)
SIZE_ATTR = Attribute(name="Size Chữ", remote_id=1, code="SZCh", sequence=1, id=1)

RED = AttributeValue(name="Red", attribute=COLOR_ATTR, code="red", remote_id=101, sequence=1, name_get="Màu: Red")
BLUE = AttributeValue(name="Blue", attribute=COLOR_ATTR, code="blue", remote_id=102, sequence=2, name_get="Màu: Blue")
SIZE_M = AttributeValue(name="Size M", attribute=SIZE_ATTR, code="M", remote_id=2, sequence=3, name_get="Size Chữ: Size M")
# known locally, never mapped to TPOS
GREEN = AttributeValue(name="Green", attribute=COLOR_ATTR, code="green", remote_id=None, sequence=4)
RETIRED = AttributeValue(name="Purple", attribute=COLOR_ATTR, code="purple", remote_id=109, active=False)


class FakeStore:
    """In-memory CatalogStore."""

    def __init__(self, values=(), products=(), credentials=()):
        self.values = list(values)
        self.products = {p.product_code: p for p in products}
        self.credentials = list(credentials)
        self.saved = {}

    async def find_attribute_values(self, names):
        wanted = {n.strip().lower() for n in names}
        return [v for v in self.values if v.active and v.name.lower() in wanted]

    async def get_product(self, product_code):
        return self.products.get(product_code)

    async def latest_credential(self, token_type):
        rows = [c for c in self.credentials if c.token_type == token_type and c.token]
        return max(rows, key=lambda c: c.created_at) if rows else None

    async def save_variant_response(self, product_code, saved):
        if product_code not in self.products:
            return False
        self.saved[product_code] = saved
        self.products[product_code].saved_response = saved
        return True


@pytest.fixture
def product():
    return SyncedProductRecord(
        product_code="NTEST",
        product_name="Áo Test",
        selling_price=150000,
        purchase_price=90000,
        variant="(Red | Blue | Size M)",
        tpos_product_id=42,
    )


@pytest.fixture
def token():
    return Credential(token="tok-new-0123456789", token_type="tpos", created_at=datetime(2024, 5, 2))


@pytest.fixture
def fake_store(product, token):
    old = Credential(token="tok-old-0000000000", token_type="tpos", created_at=datetime(2024, 5, 1))
    return FakeStore(
        values=[RED, BLUE, SIZE_M, GREEN, RETIRED],
        products=[product],
        credentials=[old, token],
    )


@pytest_asyncio.fixture
async def sessionmaker(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    await init_db(engine)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def sql_store(sessionmaker):
    return SqlCatalogStore(sessionmaker)


REMOTE_TEMPLATE = {
    "@odata.context": "http://tpos.test/odata/$metadata#ProductTemplate/$entity",
    "Id": 42,
    "Name": "Áo Test",
    "DefaultCode": "NTEST",
    "ListPrice": 150000,
    "Version": 7,
    "UOMId": 1,
    "UOM": {"@odata.type": "#UOM", "Id": 1, "Name": "Cái"},
    "Taxes": [{"Id": 9, "@odata.id": "Tax(9)"}],
    "ProductVariants": [{"Id": 500, "DefaultCode": "NTESTOLD", "AttributeValues": []}],
    "AttributeLines": [],
}


class FakeTpos:
    """Records requests and answers like TPOS would."""

    def __init__(self, template=None, update_status=200, fetch_status=200, lookup=None, fail_with=None, lookup_body=None):
        self.template = template if template is not None else copy.deepcopy(REMOTE_TEMPLATE)
        self.update_status = update_status
        self.fetch_status = fetch_status
        self.lookup = lookup or []
        self.lookup_body = lookup_body
        self.fail_with = fail_with
        self.requests = []
        self.submitted = None

    def __call__(self, request):
        self.requests.append(request)
        if self.fail_with:
            raise self.fail_with("connection reset", request=request)
        if "GetViewV2" in request.url.path:
            body = self.lookup_body if self.lookup_body is not None else {"value": self.lookup}
            return httpx.Response(200, json=body)
        if request.method == "GET":
            if self.fetch_status != 200:
                return httpx.Response(self.fetch_status, json={"error": {"message": "Token hết hạn"}})
            return httpx.Response(200, json=self.template)
        self.submitted = json.loads(request.content)
        if self.update_status != 200:
            return httpx.Response(self.update_status, json={"error": {"code": "", "message": "Dữ liệu không hợp lệ"}})
        echoed = copy.deepcopy(self.submitted)
        for i, v in enumerate(echoed["ProductVariants"], start=1):
            v["Id"] = 600 + i
        return httpx.Response(200, json=echoed)

    def factory(self, token):
        self.token = token
        return TposClient(token, base_url="https://tpos.test", transport=httpx.MockTransport(self))
