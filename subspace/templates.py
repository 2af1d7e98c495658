"""
XML-RPCリクエストテンプレート

'%' で囲まれたプレースホルダーを値で置き換えて送信する。
"""

# PARAMS: LANG, UA
LOG_IN = """
<?xml version="1.0"?>
<methodCall>
  <methodName>LogIn</methodName>
  <params>
    <param>
      <value>
        <string />
      </value>
    </param>
    <param>
      <value>
        <string />
      </value>
    </param>
    <param>
      <value>
        <string>%LANG%</string>
      </value>
    </param>
    <param>
      <value>
        <string>%UA%</string>
      </value>
    </param>
  </params>
</methodCall>
"""

# PARAMS: TOKEN
LOG_OUT = """
<?xml version="1.0"?>
<methodCall>
  <methodName>LogOut</methodName>
  <params>
    <param>
      <value>
        <string>%TOKEN%</string>
      </value>
    </param>
  </params>
</methodCall>
"""


def _search(members: str) -> str:
    """SearchSubtitles 呼び出しの共通部分で検索条件を包む."""
    return """
<?xml version="1.0"?>
<methodCall>
  <methodName>SearchSubtitles</methodName>
  <params>
    <param>
      <value>
        <string>%TOKEN%</string>
      </value>
    </param>
    <param>
      <value>
        <array>
          <data>
            <value>
              <struct>
                <member>
                  <name>sublanguageid</name>
                  <value>
                    <string>%LANG%</string>
                  </value>
                </member>
""" + members + """              </struct>
            </value>
          </data>
        </array>
      </value>
    </param>
  </params>
</methodCall>
"""


def _member(name: str, placeholder: str) -> str:
    return (
        "                <member>\n"
        f"                  <name>{name}</name>\n"
        "                  <value>\n"
        f"                    <string>%{placeholder}%</string>\n"
        "                  </value>\n"
        "                </member>\n"
    )


# PARAMS: TOKEN, LANG, HASH, SIZE
SEARCH_HASH = _search(_member("moviehash", "HASH") + _member("moviebytesize", "SIZE"))

# PARAMS: TOKEN, LANG, TAG
SEARCH_TAG = _search(_member("tag", "TAG"))

# PARAMS: TOKEN, LANG, QUERY
SEARCH_MOVIE = _search(_member("query", "QUERY"))

# PARAMS: TOKEN, LANG, QUERY, SEASON, EPISODE
SEARCH_TVSHOW = _search(
    _member("query", "QUERY") + _member("season", "SEASON") + _member("episode", "EPISODE")
)
