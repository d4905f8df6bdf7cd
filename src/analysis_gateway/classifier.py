"""Request classification: AnalysisRequest -> PromptSpec.

Rules:
- Every Category has exactly one builder (checked at import).
- Builders are pure; the same request always yields the same PromptSpec.
- Only freeform reads the caller's query/prompt. Fixed categories ignore them
  so a client cannot rewrite their instructions.
"""
from __future__ import annotations

from typing import Callable, Dict

from .types import AnalysisRequest, Category, ExpectedShape, PromptSpec

MARKET_DATA_KEYS = ("fgValue", "fgLabel", "usdjpy", "usdjpyChange", "sp500", "nikkei")
FG_LABELS = ("Extreme Fear", "Fear", "Neutral", "Greed", "Extreme Greed")

MARKET_DATA_INSTRUCTION = """今日現在の最新市場データを調査し、以下のJSON形式でのみ回答してください。余計な文章は不要です。
{
    "fgValue": 0-100の数値,
    "fgLabel": %s,
    "usdjpy": "現在のレート",
    "usdjpyChange": "前日比",
    "sp500": "現在の数値",
    "nikkei": "現在の数値"
}""" % " | ".join(f'"{label}"' for label in FG_LABELS)

_CARD_TEMPLATE = """<div class="glass-card p-8 relative overflow-hidden">
    <div class="text-blue-400 font-bold mb-2">RANK #順位</div>
    <h3 class="text-xl font-bold mb-1">銘柄名</h3>
    <p class="text-sm text-gray-400 mb-4">企業の特徴解説</p>
    %s
</div>"""

RANKING_INSTRUCTION = (
    "今日現在の日本株配当利回りランキング上位3位を調査し、\n"
    "必ず以下のHTML形式（glass-cardクラスを使用）のみで出力してください。優待情報は含めないでください。\n"
    + _CARD_TEMPLATE % '<div class="text-2xl font-black text-emerald-400">利回り 0.0%</div>'
)

# Same yield ranking, plus the annual dividend per share
DIVIDEND_RANKING_INSTRUCTION = (
    "今日現在の日本株配当利回りランキング上位3位を調査し、各銘柄の1株あたり年間配当金（予想）も併記して、\n"
    "必ず以下のHTML形式（glass-cardクラスを使用）のみで出力してください。優待情報は含めないでください。\n"
    + _CARD_TEMPLATE % (
        '<div class="text-2xl font-black text-emerald-400">利回り 0.0%</div>\n'
        '    <div class="text-sm text-gray-300">年間配当 0円</div>'
    )
)

YUTAI_LIST_INSTRUCTION = """今月が権利確定月となる日本株の株主優待銘柄を調査し、代表的なものを列挙してください。
各銘柄について必ず次の3項目を含めてください。
1. 銘柄名（証券コード）
2. 優待内容
3. 優待を受けるための最低必要株数
必ず以下のHTML形式のみで出力してください。説明文やMarkdownは不要です。
<div class="glass-card p-6 mb-4">
    <h3 class="text-lg font-bold mb-1">銘柄名（証券コード）</h3>
    <p class="text-sm text-gray-300 mb-1">優待内容</p>
    <p class="text-sm text-emerald-400">必要株数: 100株</p>
</div>"""

DEFAULT_ANALYST_INSTRUCTION = "プロの投資アナリストとして回答してください。"
DEFAULT_FREEFORM_MESSAGE = "最新の市場動向とトレンドを教えて。"

def _market_data(_: AnalysisRequest) -> PromptSpec:
    return PromptSpec(
        system_instruction=MARKET_DATA_INSTRUCTION,
        user_message="最新の市場指標を教えて。",
        expected_shape=ExpectedShape.STRUCTURED_JSON,
        required_keys=MARKET_DATA_KEYS,
    )

def _ranking(_: AnalysisRequest) -> PromptSpec:
    return PromptSpec(
        system_instruction=RANKING_INSTRUCTION,
        user_message="日本株の高配当ランキング上位3位を教えて。",
        expected_shape=ExpectedShape.FREE_TEXT,
    )

def _dividend_ranking(_: AnalysisRequest) -> PromptSpec:
    return PromptSpec(
        system_instruction=DIVIDEND_RANKING_INSTRUCTION,
        user_message="日本株の高配当ランキング上位3位を、年間配当金と合わせて教えて。",
        expected_shape=ExpectedShape.FREE_TEXT,
    )

def _yutai_list(_: AnalysisRequest) -> PromptSpec:
    return PromptSpec(
        system_instruction=YUTAI_LIST_INSTRUCTION,
        user_message="今月権利確定の株主優待銘柄を教えて。",
        expected_shape=ExpectedShape.FREE_TEXT,
    )

def _freeform(req: AnalysisRequest) -> PromptSpec:
    instruction = req.custom_instruction if (req.custom_instruction or "").strip() else DEFAULT_ANALYST_INSTRUCTION
    query = (req.query or "").strip()
    return PromptSpec(
        system_instruction=instruction,
        user_message=f"分析対象: {query}" if query else DEFAULT_FREEFORM_MESSAGE,
        expected_shape=ExpectedShape.FREE_TEXT,
    )

_BUILDERS: Dict[Category, Callable[[AnalysisRequest], PromptSpec]] = {
    Category.MARKET_DATA: _market_data,
    Category.RANKING: _ranking,
    Category.DIVIDEND_RANKING: _dividend_ranking,
    Category.YUTAI_LIST: _yutai_list,
    Category.FREEFORM: _freeform,
}

_missing = set(Category) - set(_BUILDERS)
if _missing:
    raise RuntimeError(f"no prompt builder for: {sorted(c.value for c in _missing)}")

def build_prompt(req: AnalysisRequest) -> PromptSpec:
    return _BUILDERS[req.category](req)
