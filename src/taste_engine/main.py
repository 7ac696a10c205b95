#!/usr/bin/env python3
"""
Taste Engine CLI

로컬 데이터 디렉토리의 취향 상태를 확인하고 피드백/취향 팩/계보를 다루는 스크립트

실행: python -m src.taste_engine.main <command> ...

    rate "neon cyberpunk city" 5
    trash "blurry flat portrait" --reason poor-quality
    context
    suggest
    stats
    export "Night City" --out night_city.json
    import night_city.json --mode replace
    preset "Chrome Rain"
    add-node "a cat, volumetric light" --parent <id> --mode enhance
    lineage <id> --tree
    sweep
"""

import sys
import json
import argparse
from pathlib import Path
from typing import List, Optional

from loguru import logger

from .config import load_overrides, paths
from .engine import TasteEngine
from .errors import TasteEngineError
from .models import RatingEvent, LikeEvent, TrashEvent, RejectionEvent, EditMode, LineageTree
from .reputation import progress_to_next
from .storage import JsonFileStore
from .taste_pack import list_presets


def print_header(title: str):
    print("\n" + "=" * 60)
    print(f" {title}")
    print("=" * 60)


def print_tree(tree: LineageTree):
    print(f"{'  ' * tree.depth}- {tree.node.id} [{tree.node.mode.value}] {tree.node.content}")
    for child in tree.children:
        print_tree(child)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Taste Engine CLI")
    parser.add_argument("--data-dir", default=None, help="데이터 디렉토리 (기본: TASTE_DATA_DIR)")
    parser.add_argument("--config", default=None, help="YAML 설정 파일")
    parser.add_argument("--platform", default="midjourney")
    sub = parser.add_subparsers(dest="command", required=True)

    rate = sub.add_parser("rate", help="별점 피드백")
    rate.add_argument("content")
    rate.add_argument("rating", type=int)

    like = sub.add_parser("like", help="좋아요 / 싫어요")
    like.add_argument("content")
    like.add_argument("--dislike", action="store_true")
    like.add_argument("--reason", default=None)

    reject = sub.add_parser("reject", help="거절 피드백")
    reject.add_argument("content")
    reject.add_argument("--reason", default=None)
    reject.add_argument("--text", default=None)

    trash = sub.add_parser("trash", help="삭제 피드백")
    trash.add_argument("content")
    trash.add_argument("--reason", default=None)
    trash.add_argument("--text", default=None)

    sub.add_parser("context", help="선호 컨텍스트 출력")
    sub.add_parser("stats", help="기여자 통계 + 업적 출력")
    sub.add_parser("presets", help="프리셋 목록")
    sub.add_parser("sweep", help="재시도 + 감쇠 1회 실행")

    suggest = sub.add_parser("suggest", help="플랫폼별 추천/회피 키워드")
    suggest.add_argument("--limit", type=int, default=10)

    export = sub.add_parser("export", help="취향 팩 내보내기")
    export.add_argument("name")
    export.add_argument("--description", default="")
    export.add_argument("--tags", nargs="*", default=[])
    export.add_argument("--out", default=None)

    imp = sub.add_parser("import", help="취향 팩 가져오기")
    imp.add_argument("path")
    imp.add_argument("--mode", choices=["merge", "replace"], default="merge")

    preset = sub.add_parser("preset", help="프리셋 적용")
    preset.add_argument("name")
    preset.add_argument("--mode", choices=["merge", "replace"], default="merge")

    node = sub.add_parser("add-node", help="계보 노드 추가")
    node.add_argument("content")
    node.add_argument("--parent", default=None)
    node.add_argument("--mode", choices=[m.value for m in EditMode], default=EditMode.MANUAL.value)

    lineage = sub.add_parser("lineage", help="노드의 조상 체인 (--tree: 하위 트리)")
    lineage.add_argument("node_id")
    lineage.add_argument("--tree", action="store_true")

    return parser


def build_engine(data_dir: Optional[str]) -> TasteEngine:
    if data_dir is None:
        return TasteEngine(store=JsonFileStore(paths.DATA_DIR), spool=JsonFileStore(paths.SPOOL_DIR))
    return TasteEngine(store=JsonFileStore(data_dir), spool=JsonFileStore(Path(data_dir) / "spool"))


def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    load_overrides(args.config)

    engine = build_engine(args.data_dir)
    command = args.command

    if command == "rate":
        deltas = engine.record_feedback(RatingEvent(content=args.content, rating=args.rating, platform=args.platform))
        print(f"{len(deltas)} keyword updates")
    elif command == "like":
        event = LikeEvent(content=args.content, liked=not args.dislike, reason=args.reason, platform=args.platform)
        print(f"{len(engine.record_feedback(event))} keyword updates")
    elif command == "reject":
        event = RejectionEvent(content=args.content, reason=args.reason, custom_text=args.text, platform=args.platform)
        print(f"{len(engine.record_feedback(event))} keyword updates")
    elif command == "trash":
        event = TrashEvent(content=args.content, reason=args.reason, custom_text=args.text, platform=args.platform)
        print(f"{len(engine.record_feedback(event))} keyword updates")

    elif command == "context":
        print(engine.get_preference_context(args.platform) or "(no learned preferences yet)")

    elif command == "suggest":
        print_header(f"Suggestions for {args.platform}")
        for s in engine.get_suggested_keywords(args.platform, args.limit):
            print(f"+ {s.keyword} ({s.category}, {s.score:g})")
        for s in engine.get_keywords_to_avoid(args.platform, args.limit):
            print(f"- {s.keyword} ({s.category}, {s.score:g})")

    elif command == "stats":
        stats = engine.get_contributor_stats()
        progress = progress_to_next(stats.total_points, stats.current_tier)
        print_header("Contributor Stats")
        print(json.dumps(stats.to_dict(), ensure_ascii=False, indent=2))
        print(json.dumps(progress.to_dict(), ensure_ascii=False, indent=2))
        print(f"Top keywords: {', '.join(engine.get_taste_profile().top_keywords()) or '-'}")

        print_header("Achievements")
        for p in engine.get_achievements():
            mark = "x" if p.unlocked else " "
            print(f"[{mark}] {p.achievement.name} ({min(p.current, p.achievement.target)}/{p.achievement.target})")

    elif command == "presets":
        for name in list_presets():
            print(f"- {name}")

    elif command == "sweep":
        print(json.dumps(engine.sweep().to_dict(), indent=2))

    elif command == "export":
        pack = engine.export_taste_pack(args.name, args.description, args.tags)
        text = engine.codec.to_json(pack)
        if args.out:
            with open(args.out, "w", encoding="utf-8") as f:
                f.write(text)
            print(f"Saved {len(pack.dimensions)} dimensions to {args.out}")
        else:
            print(text)

    elif command == "import":
        try:
            with open(args.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Could not read taste pack {args.path}: {e}")
            print(f"Could not read taste pack: {e}")
            return 1
        result = engine.import_taste_pack(data, args.mode)
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return 0 if result.success else 1

    elif command == "preset":
        result = engine.apply_preset(args.name, args.mode)
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return 0 if result.success else 1

    elif command == "add-node":
        node = engine.add_lineage_node(args.content, args.platform, parent_id=args.parent, mode=args.mode)
        print(node.id)

    elif command == "lineage":
        if args.tree:
            print_tree(engine.get_lineage_graph().build_tree(args.node_id))
        else:
            for depth, node in enumerate(engine.get_lineage(args.node_id)):
                print(f"{'  ' * depth}- [{node.mode.value}] {node.content}")

    return 0


def main():
    try:
        sys.exit(run())
    except TasteEngineError as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
