import pytest

import tokkit
from tokkit import scraper
from tokkit.strategies import API_MIRRORS, EMBED_URL


VIDEO_ID = "7301234567890123456"
PAGE_URL = f"https://www.tiktok.com/@skywatcher/video/{VIDEO_ID}"
SHORT_URL = "https://vm.tiktok.com/ZMabc123/"


class FakeStrategy(tokkit.BaseStrategy):
    def __init__(self, name, raw=None, exc=None, needs_id=True):
        self.name = name
        self.raw = raw
        self.exc = exc
        self.needs_id = needs_id
        self.calls = []

    def fetch(self, target, landings):
        self.calls.append(target)
        if self.exc is not None:
            raise self.exc
        return self.raw


@pytest.mark.unit
class Describe_extract:
    def test_given_invalid_url_should_fail_without_trying_strategies(self):
        """无效链接直接返回失败，不触发任何策略。"""
        web = FakeStrategy("web", raw={"id": "1"}, needs_id=False)
        result = tokkit.extract("https://example.org/nothing", strategies=(web,))
        assert result.to_dict() == {"status": "error", "message": "Invalid URL format"}
        assert web.calls == []

    def test_given_first_success_should_short_circuit(self, api_item):
        """第一个成功的策略直接返回，后续策略不再调用。"""
        web = FakeStrategy("web", raw=api_item, needs_id=False)
        api = FakeStrategy("api", raw={"aweme_id": "x"})
        result = tokkit.extract(PAGE_URL, strategies=(web, api))
        assert result.ok
        assert result.data.id == VIDEO_ID
        assert web.calls == [PAGE_URL]
        assert api.calls == []

    def test_should_pass_url_to_web_and_id_to_others(self, api_item):
        """网页策略收到原链接，其余策略收到数字 ID。"""
        web = FakeStrategy("web", raw=None, needs_id=False)
        api = FakeStrategy("api", exc=RuntimeError("boom"))
        embed = FakeStrategy("embed", raw=api_item)
        result = tokkit.extract(PAGE_URL, strategies=(web, api, embed))
        assert result.ok
        assert web.calls == [PAGE_URL]
        assert api.calls == [VIDEO_ID]
        assert embed.calls == [VIDEO_ID]

    def test_given_all_fail_should_return_generic_message(self):
        """全部失败时返回统一提示，不泄露内部错误。"""
        strategies = (
            FakeStrategy("web", exc=ValueError("secret parser detail"), needs_id=False),
            FakeStrategy("api", raw=None),
            FakeStrategy("embed", exc=KeyError("itemStruct")),
        )
        payload = tokkit.extract(PAGE_URL, strategies=strategies).to_dict()
        assert payload["status"] == "error"
        assert payload["message"].startswith("All extraction methods failed")
        assert "secret" not in str(payload)
        assert "error" not in payload

    def test_given_short_link_should_resolve_once_only_when_needed(self, monkeypatch, api_item):
        """短链只在需要 ID 时解析，且最多解析一次。"""
        resolved = []

        def fake_resolve(url, landing=None):
            resolved.append(url)
            return tokkit.ContentIdentifier(VIDEO_ID)

        monkeypatch.setattr(scraper, "resolve_short_link", fake_resolve)
        web = FakeStrategy("web", raw=None, needs_id=False)
        api = FakeStrategy("api", raw=None)
        embed = FakeStrategy("embed", raw=api_item)
        result = tokkit.extract(SHORT_URL, strategies=(web, api, embed))
        assert result.ok
        assert web.calls == [SHORT_URL]
        assert api.calls == [VIDEO_ID]
        assert resolved == [SHORT_URL]

    def test_given_short_link_and_web_success_should_not_resolve(self, monkeypatch, api_item):
        """网页策略成功时不解析短链。"""
        monkeypatch.setattr(scraper, "resolve_short_link", lambda url, landing=None: pytest.fail("resolved"))
        web = FakeStrategy("web", raw=api_item, needs_id=False)
        assert tokkit.extract(SHORT_URL, strategies=(web,)).ok

    def test_given_unresolvable_short_link_should_skip_id_strategies(self, monkeypatch):
        """短链无法解析时跳过需要 ID 的策略。"""
        monkeypatch.setattr(scraper, "resolve_short_link", lambda url, landing=None: None)
        web = FakeStrategy("web", raw=None, needs_id=False)
        api = FakeStrategy("api", raw={"aweme_id": "1"})
        result = tokkit.extract(SHORT_URL, strategies=(web, api))
        assert result.message.startswith("All extraction methods failed")
        assert api.calls == []

    def test_given_unexpected_error_should_hide_detail_in_production(self, monkeypatch):
        """意外异常在生产环境只返回通用提示。"""
        monkeypatch.setattr(scraper, "ENVIRONMENT", "production")
        monkeypatch.setattr(scraper, "parse_url", lambda url: (_ for _ in ()).throw(RuntimeError("kaboom")))
        payload = tokkit.extract(PAGE_URL).to_dict()
        assert payload == {"status": "error", "message": "Unknown error occurred"}

    def test_given_unexpected_error_should_attach_detail_in_development(self, monkeypatch):
        """开发环境下附带错误详情。"""
        monkeypatch.setattr(scraper, "ENVIRONMENT", "development")
        monkeypatch.setattr(scraper, "parse_url", lambda url: (_ for _ in ()).throw(RuntimeError("kaboom")))
        payload = tokkit.extract(PAGE_URL).to_dict()
        assert payload["message"] == "Unknown error occurred"
        assert "kaboom" in payload["error"]


@pytest.mark.unit
class Describe_extract_end_to_end:
    def test_should_extract_from_web_page(self, mock_httpx_client, web_item, pages):
        """网页可用时直接从网页提取。"""
        client = mock_httpx_client({("GET", PAGE_URL): pages.html(PAGE_URL, pages.universal(web_item))})
        payload = tokkit.extract(PAGE_URL).to_dict()
        assert payload["status"] == "success"
        assert payload["data"]["author"]["username"] == "baristabee"
        assert payload["data"]["statistics"]["views"] == "1.3m"
        assert client.calls == [("GET", PAGE_URL)]

    def test_should_fall_back_to_mobile_api(self, mock_httpx_client, api_item, pages):
        """网页被拦截时回退到移动端 API。"""
        mirror = API_MIRRORS[0].format(video_id=VIDEO_ID)
        mock_httpx_client({
            ("GET", PAGE_URL): pages.html(PAGE_URL, "<html>verify you are human</html>"),
            ("GET", mirror): pages.json(mirror, {"aweme_list": [api_item]}),
        })
        payload = tokkit.extract(PAGE_URL).to_dict()
        assert payload["status"] == "success"
        assert payload["data"]["id"] == VIDEO_ID
        assert payload["data"]["region"] == "United States"

    def test_should_fall_back_to_embed(self, mock_httpx_client, web_item, pages):
        """网页和 API 都失败时回退到嵌入页。"""
        embed = EMBED_URL.format(video_id=VIDEO_ID)
        client = mock_httpx_client({("GET", embed): pages.html(embed, pages.embed(web_item))})
        payload = tokkit.extract(PAGE_URL).to_dict()
        assert payload["status"] == "success"
        assert client.calls[-1] == ("GET", embed)
        assert len(client.calls) == 1 + len(API_MIRRORS) + 1

    def test_should_report_exhaustion_when_everything_404s(self, mock_httpx_client):
        """所有来源都失败时返回统一失败信息。"""
        mock_httpx_client({})
        result = tokkit.extract(PAGE_URL)
        assert not result.ok
        assert result.message == scraper.ALL_FAILED_MESSAGE

    def test_given_url_without_scheme_should_fetch_over_https(self, mock_httpx_client, web_item, pages):
        """缺少协议头的链接按 https 请求。"""
        client = mock_httpx_client({("GET", PAGE_URL): pages.html(PAGE_URL, pages.universal(web_item))})
        result = tokkit.extract(f"www.tiktok.com/@skywatcher/video/{VIDEO_ID}")
        assert result.ok
        assert client.calls == [("GET", PAGE_URL)]

    def test_given_blocked_short_link_should_reuse_landing_url(self, mock_httpx_client, api_item, pages):
        """短链落地页返回 403 时，沿用网页策略已拿到的落地地址，不再重复请求。"""
        landing = f"https://www.tiktok.com/@skywatcher/video/{VIDEO_ID}?_r=1"
        mirror = API_MIRRORS[0].format(video_id=VIDEO_ID)
        client = mock_httpx_client({
            ("GET", SHORT_URL): pages.html(landing, "blocked", status=403),
            ("GET", mirror): pages.json(mirror, {"aweme_list": [api_item]}),
        })
        result = tokkit.extract("vm.tiktok.com/ZMabc123/")
        assert result.ok
        assert result.data.id == VIDEO_ID
        assert client.calls == [("GET", SHORT_URL), ("GET", mirror)]

    def test_given_short_link_without_page_data_should_resolve_once(self, mock_httpx_client, web_item, pages):
        """网页无数据时，短链只请求一次即可解析出 ID。"""
        landing = f"https://www.tiktok.com/@skywatcher/video/{VIDEO_ID}"
        embed = EMBED_URL.format(video_id=VIDEO_ID)
        client = mock_httpx_client({
            ("GET", SHORT_URL): pages.html(landing, "<html></html>"),
            ("GET", embed): pages.html(embed, pages.embed(web_item)),
        })
        assert tokkit.extract(SHORT_URL).ok
        assert [url for _, url in client.calls].count(SHORT_URL) == 1
