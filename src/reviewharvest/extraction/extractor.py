"""Extractor 抽象与通用选择器实现

站点相关的字段抽取位于 Extractor 边界之后。这里提供一个由 JSON 字段定义
驱动的通用实现，让命令行可以直接运行；站点改版时只需替换字段定义文件。
"""

from __future__ import annotations

import abc
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..common.constants import CollectionMode
from ..common.exceptions import ConfigError
from ..common.logger import get_logger
from ..common.types import Record

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = get_logger(__name__)


class Extractor(abc.ABC):
    """逐页抽取记录的外部协作者"""

    @abc.abstractmethod
    async def extract(self, tab: "Page", page_index: int) -> list[Record]:
        """抽取当前页的全部记录"""


@dataclass
class FieldSelector:
    """单个字段的选择器定义"""

    name: str
    selectors: list[str]
    # 读取属性而不是文本（如图片的 src）
    attribute: str | None = None
    # 收集全部匹配值为列表
    multiple: bool = False
    default: Any = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FieldSelector":
        name = data.get("name")
        selectors = data.get("selectors") or ([data["selector"]] if data.get("selector") else [])
        if not name or not selectors:
            raise ConfigError("字段定义必须包含 name 与 selector(s)")
        multiple = bool(data.get("multiple", False))
        return cls(
            name=name,
            selectors=list(selectors),
            attribute=data.get("attribute"),
            multiple=multiple,
            default=data.get("default", [] if multiple else ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "selectors": self.selectors,
            "attribute": self.attribute,
            "multiple": self.multiple,
            "default": self.default,
        }


@dataclass
class ExtractionSchema:
    """列表项选择器 + 字段定义"""

    item_selectors: list[str]
    fields: list[FieldSelector] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "ExtractionSchema":
        if not isinstance(data, dict):
            raise ConfigError("字段定义必须是 JSON 对象")
        items = data.get("items") or data.get("item_selectors")
        if isinstance(items, str):
            items = [items]
        if not items:
            raise ConfigError("字段定义必须包含 items（列表项选择器）")
        raw_fields = data.get("fields")
        if not isinstance(raw_fields, list) or not raw_fields:
            raise ConfigError("字段定义必须包含非空的 fields 数组")
        fields = []
        for item in raw_fields:
            if not isinstance(item, dict):
                raise ConfigError("fields 必须是对象数组")
            fields.append(FieldSelector.from_dict(item))
        return cls(item_selectors=list(items), fields=fields)

    @classmethod
    def load(cls, path: str | Path) -> "ExtractionSchema":
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"字段定义文件不存在: {path}")
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigError(f"字段定义 JSON 解析失败: {exc}") from exc
        return cls.from_dict(data)

    def to_args(self) -> dict[str, Any]:
        return {
            "items": self.item_selectors,
            "fields": [f.to_dict() for f in self.fields],
        }


REVIEW_SCHEMA = ExtractionSchema(
    item_selectors=["ul.RR2FSL9wTc li.PxsZltB5tV", "li.PxsZltB5tV"],
    fields=[
        FieldSelector("Review Score", ["em.n6zq2yy0KA", "div.AlfkEF45qI em", 'em[class*="score"]'], default="점수 없음"),
        FieldSelector("Reviewer Name", ["strong.MX91DFZo2F", 'strong[class*="name"]'], default="이름 없음"),
        FieldSelector("Review Date", ["span.MX91DFZo2F", 'span[class*="date"]'], default="날짜 없음"),
        FieldSelector("Product(Option) Name", ["div.b_caIle8kC", 'div[class*="product"]'], default="정보 없음"),
        FieldSelector("Review Type", ["span.W1IZsaUmnu"], default="일반리뷰"),
        FieldSelector("Content", ["div.KqJ8Qqw082 span.MX91DFZo2F", "div.KqJ8Qqw082"], default="내용 없음"),
        FieldSelector(
            "Photos",
            ['img.UpImHAUeYJ[alt="review_image"]', 'img[alt="review_image"]'],
            attribute="src",
            multiple=True,
            default=[],
        ),
    ],
)

QNA_SCHEMA = ExtractionSchema(
    item_selectors=["ul.GGh6cWty5B > li.US1r5ZhKHv"],
    fields=[
        FieldSelector("answerStatus", ["div.ZWnjTIgQbe"]),
        FieldSelector("title", ["div.X59BRDJMf2 > a > span.mBAnjcgCAm > span.u5LpLpO6OE"]),
        FieldSelector("author", ["div.mOPZSaJl4b"]),
        FieldSelector("date", ["div.ysDyZDZUJu"]),
        # 展开后的详情；未展开时回退到标题
        FieldSelector(
            "question",
            [
                "div.Covx0ErD70 > div.VU7ivWBaeC > p.Db5mhQ9Y2S",
                "div.X59BRDJMf2 > a > span.mBAnjcgCAm > span.u5LpLpO6OE",
            ],
        ),
        FieldSelector("answer", ["div.Covx0ErD70 > div.X0_luDBHRA > div.FbrjsQ_5Kt > p.Db5mhQ9Y2S"]),
        FieldSelector("answerAuthor", ["div.Covx0ErD70 > div.X0_luDBHRA > div.f8TdRCqMqv"]),
        FieldSelector("answerDate", ["div.Covx0ErD70 > div.X0_luDBHRA > div.HUQ3Rc4mKQ"]),
    ],
)

DEFAULT_SCHEMAS = {
    CollectionMode.PRIMARY: REVIEW_SCHEMA,
    CollectionMode.THREAD: QNA_SCHEMA,
}

EXTRACT_JS = """
(schema) => {
    let items = [];
    for (const sel of schema.items) {
        items = Array.from(document.querySelectorAll(sel));
        if (items.length > 0) break;
    }
    const read = (el, attribute) => {
        const value = attribute ? el.getAttribute(attribute) : el.textContent;
        return (value || '').trim();
    };
    return items.map((item) => {
        const row = {};
        for (const f of schema.fields) {
            let value = null;
            for (const sel of f.selectors) {
                const found = Array.from(item.querySelectorAll(sel))
                    .map(el => read(el, f.attribute))
                    .filter(v => v.length > 0);
                if (found.length === 0) continue;
                value = f.multiple ? found : found[0];
                break;
            }
            row[f.name] = value === null ? f.default : value;
        }
        return row;
    });
}
"""


class SelectorExtractor(Extractor):
    """按字段定义从当前页抽取记录"""

    def __init__(self, mode: CollectionMode, schema: ExtractionSchema | None = None):
        self.mode = CollectionMode(mode)
        self.schema = schema or DEFAULT_SCHEMAS[self.mode]

    async def extract(self, tab: "Page", page_index: int) -> list[Record]:
        rows = await tab.evaluate(EXTRACT_JS, self.schema.to_args())
        records = [Record.for_mode(self.mode, row, page_index) for row in rows or []]
        logger.debug(f"[Extractor] 第 {page_index} 页抽取 {len(records)} 条")
        return records
