"""
内嵌静态资源测试

被测模块: cunzhi/control/assets.py, cunzhi/control/runtime.py
"""

from cunzhi.control import runtime
from cunzhi.control.assets import (
    DEFAULT_CONTENT_TYPE,
    AssetBundle,
    guess_content_type,
    load_asset_bundle,
)


class TestGuessContentType:
    def test_known_extensions(self):
        assert guess_content_type("index.html") == "text/html"
        assert guess_content_type("assets/style.css") == "text/css"
        assert guess_content_type("logo.png") == "image/png"

    def test_unknown_extension(self):
        assert guess_content_type("data/blob.unknownext") == DEFAULT_CONTENT_TYPE
        assert guess_content_type("LICENSE") == DEFAULT_CONTENT_TYPE


class TestAssetBundle:
    """资源解析规则测试"""

    def test_hit(self, asset_files):
        bundle = AssetBundle(asset_files)
        response = bundle.resolve("assets/style.css")
        assert response.status_code == 200
        assert response.body == b"body{}"
        assert response.media_type == "text/css"

    def test_leading_slash_stripped(self, asset_files):
        bundle = AssetBundle(asset_files)
        assert bundle.resolve("/assets/app.js").body == asset_files["assets/app.js"]

    def test_empty_path_is_index(self, asset_files):
        bundle = AssetBundle(asset_files)
        assert bundle.resolve("").body == asset_files["index.html"]
        assert bundle.resolve("/").body == asset_files["index.html"]

    def test_unknown_type_is_octet_stream(self, asset_files):
        response = AssetBundle(asset_files).resolve("data/blob.unknownext")
        assert response.media_type == "application/octet-stream"

    def test_fallback_forces_html(self):
        """测试未命中回退根文档时 Content-Type 固定为 text/html"""
        bundle = AssetBundle({"index.html": b"<html></html>"})
        response = bundle.resolve("no/such/route.js")
        assert response.status_code == 200
        assert response.media_type == "text/html"
        assert response.body == b"<html></html>"

    def test_no_index_is_404(self):
        response = AssetBundle().resolve("missing")
        assert response.status_code == 404
        assert response.body == b"404 Not Found"

    def test_read_only(self, asset_files):
        """测试构造后修改源字典不影响资源集"""
        bundle = AssetBundle(asset_files)
        asset_files["late.js"] = b"late"
        assert "late.js" not in bundle
        assert len(bundle) == 5

    def test_from_directory(self, tmp_path):
        (tmp_path / "assets").mkdir()
        (tmp_path / "index.html").write_bytes(b"<html>")
        (tmp_path / "assets" / "app.js").write_bytes(b"js")

        bundle = AssetBundle.from_directory(tmp_path)
        assert len(bundle) == 2
        assert "assets/app.js" in bundle
        assert bundle.get("assets/app.js").content == b"js"
        assert bundle.get("missing") is None


class TestLoadAssetBundle:
    def test_env_override(self, tmp_path, monkeypatch):
        (tmp_path / "index.html").write_bytes(b"custom")
        monkeypatch.setenv(runtime.WEB_DIST_ENV, str(tmp_path))

        bundle = load_asset_bundle()
        assert bundle.resolve("").body == b"custom"

    def test_missing_dist_gives_empty_bundle(self, monkeypatch):
        monkeypatch.setattr("cunzhi.control.assets.find_web_dist_dir", lambda: None)
        bundle = load_asset_bundle()
        assert len(bundle) == 0
        assert bundle.resolve("").status_code == 404

    def test_packaged_frontend_shipped(self, monkeypatch):
        """测试包内自带的前端页面可被找到"""
        monkeypatch.delenv(runtime.WEB_DIST_ENV, raising=False)
        dist = runtime.find_web_dist_dir()
        assert dist is not None
        assert (dist / "index.html").is_file()
