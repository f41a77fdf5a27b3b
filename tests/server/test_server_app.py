import tempfile
import unittest

import httpx

from cloudtree.config import ServerSettings
from cloudtree.server import RecordStore, create_app
from cloudtree.util.ids import encode_id


class AppTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        settings = ServerSettings(
            content_root=self._tmp.name,
            tokens={"tok-1": "o1", "tok-2": "o2"},
            page_size=2,
        )
        self.store = RecordStore()
        self.app = create_app(settings, store=self.store)
        self.http = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=self.app),
            base_url="http://store.test",
            headers={"Authorization": "Bearer tok-1"},
        )

    async def asyncTearDown(self) -> None:
        await self.http.aclose()

    async def create(self, name: str, item_type: str = "file", parent_id: str | None = None) -> dict:
        body = {"name": name, "type": item_type}
        if parent_id:
            body["parentId"] = encode_id(parent_id)
        resp = await self.http.post("/items", json=body)
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()


class TestAppAuth(AppTestCase):
    async def test_missing_token_is_401(self) -> None:
        resp = await self.http.get("/items", headers={"Authorization": ""})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["code"], "unauthorized")
        self.assertEqual(resp.headers["www-authenticate"], "Bearer")

    async def test_unknown_token_is_401(self) -> None:
        resp = await self.http.get("/items", headers={"Authorization": "Bearer nope"})
        self.assertEqual(resp.status_code, 401)

    async def test_foreign_record_is_403_without_fields(self) -> None:
        item = await self.create("secret.txt")
        resp = await self.http.get(
            f"/items/{encode_id(item['id'])}",
            headers={"Authorization": "Bearer tok-2"},
        )
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json(), {"error": "Forbidden", "code": "forbidden"})


class TestAppRoutes(AppTestCase):
    async def test_create_validation_is_400(self) -> None:
        for body in ({"name": "", "type": "file"}, {"name": "x", "type": "link"}, {"type": "file"}):
            resp = await self.http.post("/items", json=body)
            self.assertEqual(resp.status_code, 400)
            self.assertEqual(resp.json()["code"], "invalid_argument")

    async def test_listing_pages_with_header(self) -> None:
        for name in ("a", "b", "c"):
            await self.create(name)

        resp = await self.http.get("/items")
        self.assertEqual(len(resp.json()), 2)
        self.assertEqual(resp.headers["x-next-page"], "2")

        resp = await self.http.get("/items", params={"offset": "2"})
        self.assertEqual(len(resp.json()), 1)
        self.assertNotIn("x-next-page", resp.headers)

    async def test_get_sentinel_and_bad_token(self) -> None:
        resp = await self.http.get("/items/root")
        self.assertEqual(resp.json()["name"], "Root")

        resp = await self.http.get("/items/a")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "invalid_identifier")

    async def test_update_routes(self) -> None:
        item = await self.create("a.txt")
        path = f"/items/{encode_id(item['id'])}"

        resp = await self.http.put(path, json={})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "nothing_to_update")

        resp = await self.http.put(
            path,
            content=b'{"favoriteRank": 1e400}',
            headers={"Content-Type": "application/json"},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "invalid_argument")

        resp = await self.http.put(path, json={"name": "b.txt"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["name"], "b.txt")

    async def test_move_into_descendant_is_409(self) -> None:
        outer = await self.create("outer", "folder")
        inner = await self.create("inner", "folder", outer["id"])
        resp = await self.http.put(
            f"/items/{encode_id(outer['id'])}",
            json={"parentId": encode_id(inner["id"])},
        )
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["code"], "conflict")

    async def test_content_upload_and_download(self) -> None:
        item = await self.create("a.txt")
        path = f"/items/{encode_id(item['id'])}/content"

        resp = await self.http.get(path)
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["code"], "not_a_file")

        for method in ("PUT", "POST"):
            resp = await self.http.request(method, path, files={"file": ("local.txt", f"{method} body".encode())})
            self.assertEqual(resp.status_code, 200, resp.text)
            self.assertTrue(resp.json()["contentVersion"])

        resp = await self.http.get(path)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.content, b"POST body")
        self.assertTrue(resp.headers["content-disposition"].startswith("attachment"))
        self.assertIn("a.txt", resp.headers["content-disposition"])

    async def test_upload_without_file_is_400(self) -> None:
        item = await self.create("a.txt")
        resp = await self.http.post(f"/items/{encode_id(item['id'])}/content", data={"x": "y"})
        self.assertEqual(resp.status_code, 400)

    async def test_delete_is_204_then_404(self) -> None:
        item = await self.create("a.txt")
        path = f"/items/{encode_id(item['id'])}"
        resp = await self.http.delete(path)
        self.assertEqual(resp.status_code, 204)
        self.assertEqual(resp.content, b"")

        resp = await self.http.get(path)
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["code"], "not_found")

    async def test_changes_routes(self) -> None:
        anchor = (await self.http.get("/changes/anchor")).json()["anchor"]
        item = await self.create("a.txt")

        resp = await self.http.get("/changes", params={"since": anchor})
        data = resp.json()
        self.assertEqual([r["id"] for r in data["updated"]], [item["id"]])
        self.assertEqual(data["deleted"], [])
        self.assertFalse(data["moreComing"])

        resp = await self.http.get("/changes", params={"since": "x"})
        self.assertEqual(resp.status_code, 400)


if __name__ == "__main__":
    unittest.main()
