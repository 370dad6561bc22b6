"""Comment and pull request formatting for submission results.

This module renders the GitHub-flavored markdown posted back to the
submitter: the decline comment, the pull request title and body, and the
confirmation comment linking to the pull request.

GitHub rejects comments and pull request bodies longer than 65,536
characters, so embedded documents are truncated to fit.
"""

import re
from datetime import datetime
from typing import List

from src.lyricbot.engine.metadata import MetadataStore
from src.lyricbot.github.models import Issue
from src.lyricbot.processing.models import Success

MAX_MARKDOWN_LENGTH = 65536

# Room kept free for the truncation note and the fence lines of each block.
_BLOCK_OVERHEAD = 200

TRUNCATION_NOTE = "\n<!-- 内容过长，已截断 -->\n... (内容过长，已截断)"

DECLINE_HEADER = "## ❌ 歌词提交未通过检查\n\n"

DECLINE_FOOTER = """
---

*请修正上述问题后提交一个新的 Issue，此 Issue 不会再被自动处理。*
"""

SUCCESS_COMMENT = """## ✅ 歌词提交已通过检查

已为此提交创建 Pull Request #{pr_number}：{pr_url}

维护者审核并合并后，歌词将被收录。
"""

TIMING_MODE_LABELS = {
    "line": "逐行歌词",
    "word": "逐字歌词",
}


def truncate(text: str, limit: int) -> str:
    """Cut text to at most limit characters, marking the cut."""
    if len(text) <= limit:
        return text
    if limit <= len(TRUNCATION_NOTE):
        return text[: max(limit, 0)]
    return text[: limit - len(TRUNCATION_NOTE)] + TRUNCATION_NOTE


def fenced_block(text: str, language: str = "") -> str:
    """Wrap text in a code fence longer than any backtick run inside it."""
    longest = max((len(run) for run in re.findall(r"`+", text)), default=0)
    fence = "`" * max(3, longest + 1)
    return f"{fence}{language}\n{text}\n{fence}"


def details_block(summary: str, text: str, language: str = "xml") -> str:
    """Render a collapsible section holding a code block."""
    return (
        f"<details>\n<summary>{summary}</summary>\n\n"
        f"{fenced_block(text, language)}\n\n</details>\n"
    )


def format_decline_comment(reason: str, raw_content: str = "") -> str:
    """Format the comment posted when a submission is declined.

    Args:
        reason: Explanation of why the submission was declined.
        raw_content: Original document text; omitted when empty.

    Returns:
        Markdown comment no longer than GitHub's limit.
    """
    head = truncate(
        f"{DECLINE_HEADER}{reason.strip()}\n\n",
        MAX_MARKDOWN_LENGTH - len(DECLINE_FOOTER) - 2 * _BLOCK_OVERHEAD,
    )
    if not raw_content:
        return f"{head}{DECLINE_FOOTER}"

    budget = MAX_MARKDOWN_LENGTH - len(head) - len(DECLINE_FOOTER) - _BLOCK_OVERHEAD
    block = details_block("原始 TTML 文件", truncate(raw_content, max(budget, 0)))
    return f"{head}{block}{DECLINE_FOOTER}"


def format_success_comment(pr_number: int, pr_url: str) -> str:
    return SUCCESS_COMMENT.format(pr_number=pr_number, pr_url=pr_url)


def build_pr_title(issue: Issue) -> str:
    """Build the pull request title from the issue."""
    title = " ".join(issue.title.split())
    if not title:
        title = "实验性歌词提交"
    return f"[实验性提交] {title} (#{issue.number})"


def build_commit_message(issue: Issue) -> str:
    return f"提交歌词: {' '.join(issue.title.split()) or '实验性歌词提交'}\n\nCloses #{issue.number}"


def build_submission_path(
    submission_dir: str,
    issue: Issue,
    submitted_at: datetime,
) -> str:
    """Build the workspace-relative path of the submitted file.

    The name combines the UTC submission time, the issue number and the
    submitter's login, reduced to characters that are safe in file names.
    """
    author = re.sub(r"[^A-Za-z0-9_-]", "_", issue.author) or "anonymous"
    stamp = submitted_at.strftime("%Y%m%dT%H%M%SZ")
    return f"{submission_dir.rstrip('/')}/{stamp}-{issue.number}-{author}.ttml"


def format_metadata_table(metadata: MetadataStore) -> str:
    """Render metadata as a two-column markdown table."""
    if not len(metadata):
        return "*无元数据*\n"

    rows = ["| 键 | 值 |", "| --- | --- |"]
    for key, values in metadata.items():
        rendered = "<br>".join(_escape_cell(value) for value in values)
        rows.append(f"| `{_escape_cell(key)}` | {rendered} |")
    return "\n".join(rows) + "\n"


def format_bullets(items: List[str], empty: str) -> str:
    lines = [f"- {' '.join(item.split())}" for item in items if item.strip()]
    if not lines:
        return f"*{empty}*\n"
    return "\n".join(lines) + "\n"


def build_pr_body(issue: Issue, result: Success) -> str:
    """Build the pull request body for an accepted submission.

    Contains the issue reference, submitter, timing mode, metadata,
    parse warnings, remarks, and the formatted and original documents.
    The two documents share whatever room the rest of the body leaves.

    Args:
        issue: The originating issue.
        result: The successful pipeline outcome.

    Returns:
        Markdown body no longer than GitHub's limit.
    """
    submitter = f"@{issue.author}" if issue.author else "未知"
    mode = TIMING_MODE_LABELS.get(result.timing_mode.value, result.timing_mode.value)
    remarks = result.remarks.strip() or "*无*"

    head = (
        f"Closes #{issue.number}\n\n"
        f"**提交者**: {submitter}\n"
        f"**计时模式**: {mode}\n\n"
        f"### 元数据\n\n{format_metadata_table(result.metadata)}\n"
        f"### 解析警告\n\n{format_bullets(result.warnings, '无警告')}\n"
        f"### 备注\n\n{remarks}\n\n"
    )

    budget = MAX_MARKDOWN_LENGTH - len(head) - 2 * _BLOCK_OVERHEAD
    if budget < 0:
        head = truncate(head, MAX_MARKDOWN_LENGTH - 2 * _BLOCK_OVERHEAD)
        budget = 0
    per_block = budget // 2

    formatted_block = details_block("格式化的 TTML", truncate(result.formatted, per_block))
    original_block = details_block("原始 TTML 文件", truncate(result.original, per_block))
    return f"{head}{formatted_block}\n{original_block}"


def _escape_cell(value: str) -> str:
    return " ".join(value.split()).replace("|", "\\|")
