"""Simulated news corpus.

Built once at startup and never mutated. Used when no live feed is
configured and as the fallback when the live feed cannot be read.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from docflow.modules.news.schemas import RawNewsArticle

_SIMULATED_ITEMS: tuple[dict[str, str], ...] = (
    {
        "id": "sim_news1",
        "title": "Банк ДОМ.РФ успешно разместил новый выпуск ипотечных облигаций (СИМУЛЯЦИЯ)",
        "link": "https://example.com/domrf-bonds-success",
        "source": "РБК Инвестиции (Симуляция)",
        "full_text": (
            "Банк ДОМ.РФ объявил об успешном размещении нового выпуска ипотечных ценных "
            "бумаг (ИЦБ) с поручительством ДОМ.РФ. Объем выпуска составил 50 млрд рублей. "
            "Спрос со стороны инвесторов превысил предложение в несколько раз. "
            "(Это симулированные данные)"
        ),
    },
    {
        "id": "sim_news2",
        "title": "ЦБ сохранил ключевую ставку без изменений (СИМУЛЯЦИЯ)",
        "link": "https://example.com/key-rate",
        "source": "Интерфакс (Симуляция)",
        "full_text": (
            "Совет директоров Банка России принял решение сохранить ключевую ставку. "
            "Аналитики ожидают, что решение поддержит стабильность кредитного рынка. "
            "(Это симулированные данные)"
        ),
    },
    {
        "id": "sim_news3",
        "title": "Клиенты Банка ДОМ.РФ жалуются на сбои в работе мобильного приложения (СИМУЛЯЦИЯ)",
        "link": "https://example.com/domrf-app-issues",
        "source": "Банки.ру (Симуляция)",
        "full_text": (
            "В последние несколько дней пользователи мобильного приложения Банка ДОМ.РФ "
            "сообщают о периодических сбоях. Представители банка пока не дали официальных "
            "комментариев. (Это симулированные данные)"
        ),
    },
)


@dataclass(frozen=True)
class NewsCorpus:
    articles: tuple[RawNewsArticle, ...]

    def __len__(self) -> int:
        return len(self.articles)

    def __iter__(self):
        return iter(self.articles)


def _past_date(today: date, index: int) -> str:
    return (today - timedelta(days=index % 20 + 1)).isoformat()


def build_simulated_corpus(today: date | None = None) -> NewsCorpus:
    today = today or date.today()
    return NewsCorpus(
        articles=tuple(
            RawNewsArticle(publish_date=_past_date(today, index), **item)
            for index, item in enumerate(_SIMULATED_ITEMS)
        )
    )
