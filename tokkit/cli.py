"""tokkit - TikTok 内容信息提取

用法:
    tokkit "https://www.tiktok.com/@user/video/123"
    tokkit "https://vm.tiktok.com/abc/" --json
    tokkit "链接" --brief
    tokkit --batch links.txt --json
"""

import argparse
import json
import logging
import sys

from .http import ClientPool
from .models import Result
from .scraper import extract

logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")
logger = logging.getLogger("tokkit")

# ─── 输出格式 ──────────────────────────────────────────────────────────────────

def format_result(r: Result) -> str:
    if not r.ok:
        return f"❌ {r.message}"
    d = r.data
    lines = []
    lines.append(f"{'═'*60}")
    lines.append(f"  ID:   {d.id}")
    lines.append(f"  类型: {'图文' if d.type == 'images' else '视频'}")
    if d.created_at:
        lines.append(f"  发布: {d.created_at}")
    lines.append(f"  地区: {d.region}")
    lines.append(f"{'─'*60}")
    if d.desc:
        desc = d.desc[:200] + ("..." if len(d.desc) > 200 else "")
        lines.append(f"  描述: {desc}")
    author_info = f"  作者: {d.author.name} (@{d.author.username})"
    if d.author.verified:
        author_info += " ✔"
    lines.append(author_info)
    if d.duration:
        m, s = divmod(d.duration, 60)
        lines.append(f"  时长: {m}:{s:02d}")
    if d.music.title:
        music = d.music.title
        if d.music.author and d.music.author != music:
            music = f"{music} - {d.music.author}"
        lines.append(f"  音乐: {music}")
    lines.append(f"{'─'*60}")

    s = d.statistics
    lines.append(f"  互动: 播放 {s.views} | 点赞 {s.likes} | 评论 {s.comments} | 分享 {s.shares}")
    lines.append(f"{'─'*60}")

    if d.type == "images":
        for i, img in enumerate(d.images or []):
            lines.append(f"  🖼  图片 [{i}] {img.width}x{img.height}: {img.url[:100]}")
    elif d.video:
        for i, v in enumerate(d.video.no_watermark):
            url_display = v.url[:100] + ("..." if len(v.url) > 100 else "")
            lines.append(f"  🎬 无水印 [{i}] {v.quality} ({v.size}): {url_display}")
        for i, v in enumerate(d.video.with_watermark):
            lines.append(f"  💧 有水印 [{i}] {v.quality}: {v.url[:100]}")
        if d.video.hd:
            lines.append(f"  📺 HD: {d.video.hd[:100]}")

    if d.thumbnail:
        lines.append(f"  🖼  封面: {d.thumbnail[:100]}")
    lines.append(f"{'═'*60}")
    return "\n".join(lines)


def format_brief(r: Result) -> str:
    """One-line brief summary."""
    if not r.ok:
        return f"[error] {r.message}"
    d = r.data
    desc = d.desc.replace("\n", " ")[:60]
    s = d.statistics
    return " | ".join([
        f"[{d.type}]",
        f"@{d.author.username or d.author.name}",
        f'"{desc}"',
        f"▶{s.views} ❤{s.likes} 💬{s.comments}",
    ])

# ─── 批量处理 ──────────────────────────────────────────────────────────────────

def batch_extract(links_file: str, as_json: bool = False, fmt: str = "default") -> list[Result]:
    with open(links_file, encoding="utf-8") as f:
        urls = [line.strip() for line in f if line.strip() and not line.startswith("#")]

    results = []
    total = len(urls)
    for i, url in enumerate(urls, 1):
        print(f"[{i}/{total}] 处理中... {url[:60]}", file=sys.stderr)
        results.append(extract(url))

    if as_json:
        print(json.dumps([r.to_dict() for r in results], ensure_ascii=False, indent=2))
    else:
        for r in results:
            print(format_brief(r) if fmt == "brief" else format_result(r))

    ok = sum(1 for r in results if r.ok)
    print(f"\n{'═'*40}", file=sys.stderr)
    print(f"  批量处理完成: 成功 {ok}/{total}", file=sys.stderr)
    print(f"{'═'*40}", file=sys.stderr)
    return results

# ─── CLI ───────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tokkit",
        description="tokkit - TikTok 视频/图文信息提取",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  tokkit "https://www.tiktok.com/@user/video/7234567890123456789"
  tokkit "https://vm.tiktok.com/ZMabc123/" --json
  tokkit --batch links.txt --brief
""",
    )
    parser.add_argument("url", nargs="?", help="TikTok 链接")
    parser.add_argument("--json", "-j", action="store_true", help="JSON 格式输出")
    parser.add_argument("--brief", action="store_true", help="极简一行输出")
    parser.add_argument("--batch", "-b", metavar="FILE", help="批量处理: 从文件读取链接列表")
    parser.add_argument("--verbose", "-v", action="store_true", help="详细日志")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger("tokkit").setLevel(logging.DEBUG)

    fmt = "brief" if args.brief else "default"

    with ClientPool():
        if args.batch:
            batch_extract(args.batch, as_json=args.json, fmt=fmt)
            return 0

        if not args.url:
            parser.print_help()
            return 1

        result = extract(args.url)

    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    elif args.brief:
        print(format_brief(result))
    else:
        print(format_result(result))
    return 0 if result.ok else 1


def run():
    try:
        sys.exit(main())
    except OSError as e:
        # CLI catches file errors (--batch) and prints friendly message.
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    run()
