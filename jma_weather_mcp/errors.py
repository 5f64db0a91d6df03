"""
Error taxonomy.

Every error raised inside the engines is a WeatherToolError; the MCP tool
handler turns it into user-facing text via user_message() instead of letting
it cross the tool boundary.
"""
from typing import List, Optional, Sequence


class WeatherToolError(Exception):
    """Base class: carries a Japanese message meant for the end user."""

    def user_message(self) -> str:
        return str(self)


class DataUnavailable(WeatherToolError):
    """The area hierarchy (area.json) could not be found or parsed at startup."""

    def __init__(self, attempted_paths: Sequence[str], reason: Optional[str] = None):
        self.attempted_paths: List[str] = [str(p) for p in attempted_paths]
        self.reason = reason
        super().__init__(f"area data unavailable (tried: {', '.join(self.attempted_paths)})")

    def user_message(self) -> str:
        tried = "\n".join(f"- {p}" for p in self.attempted_paths) or "- (なし)"
        msg = "地域データ(area.json)を読み込めなかったため、地域を特定できません。\n確認したパス:\n" + tried
        if self.reason:
            msg += f"\n原因: {self.reason}"
        return msg


class LocationNotFound(WeatherToolError):
    def __init__(self, location: str):
        self.location = location
        super().__init__(f"location not found: {location!r}")

    def user_message(self) -> str:
        return (
            f"申し訳ありません。「{self.location}」に該当する地域が見つかりません。\n"
            "都道府県名または市区町村名で指定してください (例: 東京都, 大阪, 札幌市, 広島県府中市)。"
        )


class UpstreamFetchFailed(WeatherToolError):
    """Network error, timeout, non-2xx or undecodable JSON from JMA."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"JMA fetch failed: {url} ({reason})")

    def user_message(self) -> str:
        return "気象庁からの天気データの取得に失敗しました。しばらくしてから再度お試しください。"


class UpstreamShapeIncomplete(WeatherToolError):
    """Payload arrived but an expected block (e.g. the weekly element) is absent."""

    def __init__(self, what: str):
        self.what = what
        super().__init__(f"JMA payload incomplete: {what}")

    def user_message(self) -> str:
        return f"気象庁のデータに{self.what}が含まれていませんでした。"
