"""
XML-RPCの簡易エンコーダ/デコーダ

このモジュールは汎用XMLパーサーではない。OpenSubtitlesの応答は形が決まっているので、
必要なフィールドだけを正規表現で抜き出す。壊れた・不完全なXMLも受け付ける。
"""

import gzip
import logging
import re
import zlib
from typing import Dict, Iterable, List, Mapping, Tuple, Union
from xml.sax.saxutils import escape, unescape

from .error_handler import ProtocolError, SubtitleIOError
from .models import Subtitle

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"

PLACEHOLDER_PATTERN = re.compile(r"%(\w+)%")

# <member><name>K</name><value><TYPE>V</TYPE></value></member>
# 値が配列・構造体のメンバーは [^<]* に一致しないので拾わない
MEMBER_PATTERN = re.compile(
    r"<member>\s*<name>([^<]+)</name>\s*<value>\s*"
    r"(?:<\w+\s*/>|<(\w+)>([^<]*)</\2>|([^<]*))"
    r"\s*</value>\s*</member>",
    re.IGNORECASE,
)

DATA_PATTERN = re.compile(r"<data>([\s\S]*)</data>", re.IGNORECASE)

# 各レコードは必ず MatchedBy メンバーから始まる
RECORD_BOUNDARY = re.compile(
    r"(?=<value>\s*<struct>\s*<member>\s*<name>MatchedBy</name>)",
    re.IGNORECASE,
)

Params = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


def encode_template(template: str, params: Params) -> str:
    """
    テンプレートの %NAME% プレースホルダーを値で置き換える.

    名前は大文字小文字を区別しない。値はそのまま埋め込まれる（エスケープしない）。
    テンプレートに無い名前は無視し、値の無いプレースホルダーは残す。

    Args:
        template: リクエストテンプレート
        params: (名前, 値) の組、または辞書

    Returns:
        前後の空白を除いたリクエスト本文
    """
    items = params.items() if isinstance(params, Mapping) else params
    values = {name.lower(): value for name, value in items}

    def _replace(match: re.Match) -> str:
        return values.get(match.group(1).lower(), match.group(0))

    return PLACEHOLDER_PATTERN.sub(_replace, template).strip()


def escape_value(value: str) -> str:
    """XML本文に埋め込めるよう & < > をエスケープ."""
    return escape(value)


def decompress(data: bytes) -> bytes:
    """
    gzip本文を解凍.

    httpx は Content-Encoding: gzip を自動で解凍するため、gzipのマジックナンバーが
    無い本文は解凍済みとみなしてそのまま返す。

    Args:
        data: 受信した本文

    Raises:
        SubtitleIOError: 解凍に失敗した場合
    """
    if not data.startswith(GZIP_MAGIC):
        return data

    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        logger.error(f"Decompression failed: {e}")
        raise SubtitleIOError(f"Decompression failed: {e}", operation="decompress") from e


def decode_text(data: bytes) -> str:
    """解凍済みの本文をUTF-8文字列に変換."""
    return data.decode("utf-8", errors="replace")


def parse_members(text: str) -> Dict[str, str]:
    """
    スカラー値のメンバーを {名前: 値} に抜き出す.

    <string/> のような空要素は空文字列になる。同名のメンバーは後勝ち。
    """
    fields = {}
    for match in MEMBER_PATTERN.finditer(text):
        name, type_name, typed_value, bare_value = match.groups()
        if type_name is not None:
            value = typed_value
        elif bare_value is not None:
            value = bare_value.strip()
        else:
            value = ""
        fields[name.strip()] = unescape(value)
    return fields


def extract_data(text: str) -> str:
    """最も外側の <data>...</data> の中身を返す（無ければ空文字列）."""
    match = DATA_PATTERN.search(text)
    return match.group(1) if match else ""


def split_records(data: str) -> List[str]:
    """配列の中身を MatchedBy を境にレコード単位の断片へ分割."""
    return RECORD_BOUNDARY.split(data)[1:]


def check_status(fields: Mapping[str, str], method: str = None) -> None:
    """
    XML-RPC応答の status フィールドを確認.

    Raises:
        ProtocolError: status があり、かつ "200" で始まらない場合
    """
    status = fields.get("status")
    if status and not status.strip().startswith("200"):
        raise ProtocolError(f"Server returned status '{status.strip()}'", method=method)


def _int_field(fields: Mapping[str, str], key: str) -> int:
    value = (fields.get(key) or "").strip()
    if not value:
        return 0
    try:
        return int(value)
    except ValueError as e:
        raise ProtocolError(f"Invalid integer in field {key}: {value!r}") from e


def _float_field(fields: Mapping[str, str], key: str) -> float:
    value = (fields.get(key) or "").strip()
    if not value:
        return 0.0
    try:
        return float(value)
    except ValueError as e:
        raise ProtocolError(f"Invalid number in field {key}: {value!r}") from e


def _str_field(fields: Mapping[str, str], key: str):
    return fields.get(key) or None


def decode_subtitle(fields: Mapping[str, str]) -> Subtitle:
    """
    サーバーが返したレコードのフィールドから Subtitle を作る.

    数値フィールドが欠けている・空の場合は 0 とする。

    Raises:
        ProtocolError: 数値フィールドが数値として解釈できない場合
    """
    return Subtitle(
        format=_str_field(fields, "SubFormat"),
        id=_int_field(fields, "IDSubtitle"),
        hash=_str_field(fields, "SubHash"),
        filename=_str_field(fields, "SubFileName"),
        language=_str_field(fields, "ISO639"),
        hearing_impaired=fields.get("SubHearingImpaired") == "1",
        rating=_float_field(fields, "SubRating"),
        downloads_count=_int_field(fields, "SubDownloadsCnt"),
        download_link=_str_field(fields, "SubDownloadLink"),
        matched_by=_str_field(fields, "MatchedBy"),
        movie_id=_int_field(fields, "IDMovie"),
        imdb_id=_int_field(fields, "IDMovieImdb"),
        movie_name=_str_field(fields, "MovieName"),
        movie_year=_int_field(fields, "MovieYear"),
        movie_rating=_float_field(fields, "MovieImdbRating"),
    )


def decode_subtitles(text: str) -> List[Subtitle]:
    """
    SearchSubtitles 応答から全レコードを Subtitle として取り出す.

    data ブロックが無い・空の応答は空リストになる。
    """
    return [decode_subtitle(parse_members(record)) for record in split_records(extract_data(text))]
