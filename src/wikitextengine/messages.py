# Interface messages (tracking category names etc.)
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import json
from functools import lru_cache
from importlib.resources import files
from typing import Optional

from .options import MessageCallable


@lru_cache(maxsize=None)
def load_messages(lang_code: str) -> dict[str, str]:
    data_folder = files("wikitextengine") / "data" / lang_code
    with data_folder.joinpath("messages.json").open(encoding="utf-8") as f:
        return json.load(f)


def get_message(
    key: str,
    lang_code: str = "en",
    message_fn: Optional[MessageCallable] = None,
) -> Optional[str]:
    """Returns the text of message ``key``.  ``message_fn``, if given, is
    asked first; the bundled messages are the fallback."""
    if message_fn is not None:
        text = message_fn(key)
        if text is not None:
            return text
    return load_messages(lang_code).get(key)
