#!/usr/bin/env python3
"""
気象庁の地域コード表 (area.json) を取得して、同梱のスナップショットを置き換えるスクリプト

使い方:
    python fetch_area_json.py                 # jma_weather_mcp/data/area.json を更新
    python fetch_area_json.py ./area.json     # 任意のパスに保存
"""
import asyncio
import json
import sys
from pathlib import Path

from jma_weather_mcp.area_index import AreaHierarchyIndex
from jma_weather_mcp.client import JMAClient
from jma_weather_mcp.errors import UpstreamFetchFailed

DEFAULT_OUTPUT = Path(__file__).resolve().parent / "jma_weather_mcp" / "data" / "area.json"


async def fetch_area_json() -> dict:
    """area.json を取得し、地域インデックスとして読み込めることを確認してから返す"""
    async with JMAClient() as client:
        data = await client.get_area_json()
    # 構造が壊れていれば ValueError
    index = AreaHierarchyIndex.from_dict(data)
    print(
        f"取得しました: offices={index.size('offices')}件, "
        f"class10s={index.size('class10s')}件, class20s={index.size('class20s')}件"
    )
    return data


def main():
    """メイン処理"""
    output = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_OUTPUT

    print("気象庁の地域コード表を取得しています...")
    try:
        data = asyncio.run(fetch_area_json())
    except (UpstreamFetchFailed, ValueError) as e:
        print(f"エラー: {e}", file=sys.stderr)
        sys.exit(1)

    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    print(f"\n{output} に保存しました")


if __name__ == "__main__":
    main()
