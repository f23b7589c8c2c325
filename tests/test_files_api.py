from urllib.parse import parse_qs, urlparse

from .conftest import PNG_BYTES


def _path_and_token(url):
    parsed = urlparse(url)
    return parsed.path, parse_qs(parsed.query)["token"][0]


def test_upload_and_download_through_presigned_urls(client, settings):
    res = client.get("/files/upload-url", params={"filename": "site mockup.png"})
    assert res.status_code == 200
    grant = res.json()
    assert grant["method"] == "PUT"
    assert grant["expiresIn"] == 300
    assert grant["originalFilename"] == "site mockup.png"
    assert grant["uploadUrl"].startswith("http://testserver/files/upload?token=")

    path, token = _path_and_token(grant["uploadUrl"])
    res = client.put(path, params={"token": token}, content=PNG_BYTES)
    assert res.status_code == 200
    assert res.json() == {
        "success": True,
        "filename": grant["secureFilename"],
        "size": len(PNG_BYTES),
        "type": "png",
    }
    assert (settings.file_upload_base_dir / grant["secureFilename"]).read_bytes() == PNG_BYTES

    res = client.get("/files/download-url", params={"filename": grant["secureFilename"]})
    assert res.status_code == 200
    path, token = _path_and_token(res.json()["downloadUrl"])

    res = client.get(path, params={"token": token})
    assert res.status_code == 200
    assert res.content == PNG_BYTES
    assert res.headers["content-type"] == "image/png"
    assert res.headers["cache-control"] == "private, max-age=300"
    assert res.headers["content-disposition"] == f'inline; filename="{grant["secureFilename"]}"'


def test_upload_url_without_filename(client):
    res = client.get("/files/upload-url")

    assert res.status_code == 400
    assert res.json() == {"error": "filename required", "code": "missing_parameter"}


def test_upload_with_bad_token_hides_the_reason(client):
    res = client.put("/files/upload", params={"token": "Zm9vfGJhcnxiYXo"}, content=PNG_BYTES)

    assert res.status_code == 401
    assert res.json() == {"error": "Invalid or expired token", "code": "invalid_token"}


def test_upload_without_token(client):
    res = client.put("/files/upload", content=PNG_BYTES)

    assert res.status_code == 400
    assert res.json()["code"] == "missing_parameter"


def test_upload_of_disallowed_content(client):
    grant = client.get("/files/upload-url", params={"filename": "notes.txt"}).json()
    path, token = _path_and_token(grant["uploadUrl"])

    res = client.put(path, params={"token": token}, content=b"plain text is not allowed")

    assert res.status_code == 400
    assert res.json()["code"] == "unsupported_file_type"


def test_download_url_rejects_traversal(client):
    res = client.get("/files/download-url", params={"filename": "../.env"})

    assert res.status_code == 400
    assert res.json()["code"] == "invalid_filename"


def test_download_of_missing_file(client):
    res = client.get("/files/download-url", params={"filename": "gone.pdf"})
    path, token = _path_and_token(res.json()["downloadUrl"])

    res = client.get(path, params={"token": token})

    assert res.status_code == 404
    assert res.json()["code"] == "file_not_found"


def test_healthz(client):
    res = client.get("/healthz")

    assert res.status_code == 200
    assert res.json()["status"] == "ok"
