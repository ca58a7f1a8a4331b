#!/usr/bin/env python3
"""
固定已上传文件的外部访问链接。

修改储存策略的域名或路径之前运行，保证旧文件的链接不会随配置变化。

示例：
    python scripts/freeze_public_urls.py
    python scripts/freeze_public_urls.py --strategy-id 3f0c...
"""

from __future__ import annotations

import argparse
import asyncio

from assetvault.core.container import get_container
from assetvault.infrastructure.database.session import dispose_engine, get_session
from assetvault.modules.assets import AssetService
from assetvault.modules.strategies import StrategyService


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Freeze public URLs of stored assets")
    parser.add_argument("--strategy-id", help="only process assets of this strategy (default: all)")
    return parser.parse_args()


async def freeze_public_urls(strategy_id: str | None) -> int:
    """逐个策略固定缺失的访问链接，返回处理的文件数"""
    get_container().init_infrastructure()

    total = 0
    try:
        async for db in get_session():
            strategies = StrategyService.with_session(db)
            assets = AssetService.with_session(db)

            if strategy_id:
                targets = [await strategies.get_strategy(strategy_id)]
            else:
                targets = await strategies.list_strategies()

            for strategy in targets:
                frozen = await assets.freeze_public_urls_for_strategy(strategy)
                print(f"[freeze] {strategy.name} ({strategy.id}): {frozen}")
                total += frozen
    finally:
        await dispose_engine()
    return total


def main() -> None:
    args = parse_args()
    total = asyncio.run(freeze_public_urls(args.strategy_id))
    print(f"共固定 {total} 个文件链接")


if __name__ == "__main__":
    main()
