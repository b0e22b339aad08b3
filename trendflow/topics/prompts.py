"""Prompt templates for direction analysis.

The user prompt is written in Chinese and asks for bilingual (Chinese and
English) field variants in a strict JSON structure.
"""

import json
from typing import Any

# ── System Prompt ──────────────────────────────────────────

SYSTEM_PROMPT = (
    "You are an experienced product manager focused on early-stage startup "
    "direction discovery. Analyze user discussions to extract actionable "
    "startup opportunities."
)

# ── User Prompt ────────────────────────────────────────────

TASK_INSTRUCTIONS = """\
任务：你是一个经验丰富的产品经理，专注于早期创业方向挖掘。下面我给你一组用户讨论摘录（每条是用户真实的痛点或抱怨），以及聚类统计数据。请基于这些内容：

1. 提炼出 3–6 个清晰、可验证的创业方向（每个方向给出目标用户、核心痛点、替代方案、关键价值主张）。
2. 对每个方向给出 3 条可执行的最小可行验证（MVP）建议（可测量的实验，例如 1 周内 X 用户试验、落地页面的文案、首次获客渠道）。
3. 给出基于这些讨论的风险点和反驳式假设（每个方向 1–2 条）。
4. 每个方向必须生成多语言命名与摘要（中文/英文），并为目标用户、痛点、机会标签提供补充描述。"""

RESPONSE_FORMAT = """\
请返回严格的 JSON 格式，结构如下：
{
  "directions": [
    {
      "direction_title": "...",
      "direction_name_cn": "给中国用户看的短标题",
      "direction_name_en": "Short English title",
      "summary": "单段英文摘要",
      "summary_cn": "单段中文摘要",
      "summary_en": "Single paragraph English summary",
      "target_user": "...",
      "target_audience": "一句话描述目标客户画像（英文）",
      "target_audience_cn": "一句话描述目标客户画像（中文）",
      "target_audience_en": "target audience sentence in English",
      "pain_point": "...",
      "pain_point_cn": "中文痛点描述",
      "pain_point_en": "English pain point description",
      "alternatives": "...",
      "value_prop": "...",
      "opportunity_tag": "3-5 个英文词总结机会",
      "opportunity_tag_cn": "3-5 个中文词总结机会",
      "opportunity_tag_en": "3-5 english words summarizing the opportunity",
      "mvps": ["...","...","..."],
      "risks": ["..."],
      "evidence": ["引用传入的示例段落索引或摘录简短语句"]
    }
  ]
}"""


def build_analysis_prompt(passages: list[str], cluster_info: dict[str, Any] | None = None) -> str:
    """Assemble the user prompt with indexed passages and optional cluster stats."""
    passage_list = "\n\n".join(f"[{i}] {text}" for i, text in enumerate(passages))
    cluster_line = (
        f"- cluster_summary: {json.dumps(cluster_info, ensure_ascii=False)}" if cluster_info else ""
    )
    return (
        f"{TASK_INSTRUCTIONS}\n\n"
        f"输入数据：\n"
        f"{cluster_line}\n"
        f"- example_passages:\n"
        f"{passage_list}\n\n"
        f"{RESPONSE_FORMAT}"
    )
