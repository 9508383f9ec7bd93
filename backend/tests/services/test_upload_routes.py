"""Upload serving tests — stored images are fetchable by their imagePath."""

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


async def _uploaded_image(client):
    game = (await client.post(
        "/api/v1/games", json={"name": "Friday", "creatorName": "Alice"},
    )).json()
    res = await client.post(
        f"/api/v1/games/{game['id']}/upload",
        files={"image": ("cat.png", PNG, "image/png")},
        data={"title": "Cat"},
    )
    assert res.status_code == 201, res.text
    return res.json()


async def test_uploaded_image_is_served(client):
    image = await _uploaded_image(client)

    res = await client.get(f"/api/v1/uploads/{image['imagePath']}")

    assert res.status_code == 200
    assert res.content == PNG
    assert res.headers["content-type"].startswith("image/png")


async def test_unknown_key_is_404(client):
    res = await client.get("/api/v1/uploads/0123456789abcdef.png")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_key_with_separator_is_404(client):
    res = await client.get("/api/v1/uploads/a%5Cb.png")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_files_outside_upload_dir_are_not_reachable(client, blob_store):
    (blob_store.root.parent / "secret.png").write_bytes(PNG)
    res = await client.get("/api/v1/uploads/..%2Fsecret.png")
    assert res.status_code == 404


async def test_deleted_blob_is_404(client, blob_store):
    image = await _uploaded_image(client)
    await blob_store.delete(image["imagePath"])

    res = await client.get(f"/api/v1/uploads/{image['imagePath']}")

    assert res.status_code == 404
