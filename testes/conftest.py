import os
import sys

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

WXR_SAMPLE = """<?xml version="1.0" encoding="UTF-8" ?>
<rss version="2.0"
    xmlns:excerpt="http://wordpress.org/export/1.2/excerpt/"
    xmlns:content="http://purl.org/rss/1.0/modules/content/"
    xmlns:wfw="http://wellformedweb.org/CommentAPI/"
    xmlns:dc="http://purl.org/dc/elements/1.1/"
    xmlns:wp="http://wordpress.org/export/1.2/">
<channel>
    <title>Jenkins is the Way</title>
    <wp:author>
        <wp:author_id>1</wp:author_id>
        <wp:author_login><![CDATA[admin]]></wp:author_login>
        <wp:author_email><![CDATA[admin@example.com]]></wp:author_email>
    </wp:author>
    <wp:category>
        <wp:term_id>3</wp:term_id>
        <wp:category_nicename><![CDATA[map]]></wp:category_nicename>
        <wp:cat_name><![CDATA[map]]></wp:cat_name>
    </wp:category>
    <wp:tag>
        <wp:term_id>5</wp:term_id>
        <wp:tag_slug><![CDATA[ci]]></wp:tag_slug>
        <wp:tag_name><![CDATA[CI]]></wp:tag_name>
    </wp:tag>
    <wp:term>
        <wp:term_id>7</wp:term_id>
        <wp:term_taxonomy><![CDATA[nav_menu]]></wp:term_taxonomy>
        <wp:term_slug><![CDATA[main]]></wp:term_slug>
    </wp:term>
    <item>
        <title>Jenkins is the way to space</title>
        <link>https://jenkinsistheway.io/user-story/to-space/</link>
        <pubDate>Thu, 04 Mar 2021 15:00:00 +0000</pubDate>
        <dc:creator><![CDATA[admin]]></dc:creator>
        <guid isPermaLink="false">https://jenkinsistheway.io/?p=42</guid>
        <content:encoded><![CDATA[<p><b>Organization:&nbsp;</b>Space Corp</p><h2><strong>Results</strong></h2>]]></content:encoded>
        <excerpt:encoded><![CDATA[]]></excerpt:encoded>
        <wp:post_id>42</wp:post_id>
        <wp:post_name><![CDATA[to-space]]></wp:post_name>
        <wp:post_type><![CDATA[post]]></wp:post_type>
        <category domain="category" nicename="user-story"><![CDATA[User Story]]></category>
        <wp:postmeta>
            <wp:meta_key><![CDATA[location]]></wp:meta_key>
            <wp:meta_value><![CDATA[Berlin]]></wp:meta_value>
        </wp:postmeta>
        <wp:postmeta>
            <wp:meta_key><![CDATA[_tags]]></wp:meta_key>
            <wp:meta_value><![CDATA[a:2:{i:0;s:2:"ci";i:1;s:2:"cd";}]]></wp:meta_value>
        </wp:postmeta>
        <wp:postmeta>
            <wp:meta_key><![CDATA[broken]]></wp:meta_key>
            <wp:meta_value><![CDATA[s:99:"short";]]></wp:meta_value>
        </wp:postmeta>
    </item>
    <item>
        <title>Two categories</title>
        <pubDate>Fri, 05 Mar 2021 10:30:00 +0000</pubDate>
        <wp:post_id>43</wp:post_id>
        <wp:post_name><![CDATA[two-categories]]></wp:post_name>
        <wp:post_type><![CDATA[post]]></wp:post_type>
        <category domain="category" nicename="map"><![CDATA[map]]></category>
        <category domain="post_tag" nicename="ci"><![CDATA[CI]]></category>
        <wp:comment><wp:comment_id>1</wp:comment_id></wp:comment>
        <wp:comment><wp:comment_id>2</wp:comment_id></wp:comment>
    </item>
</channel>
</rss>
"""


@pytest.fixture
def wxr_file(tmp_path):
    path = tmp_path / "export.xml"
    path.write_text(WXR_SAMPLE, encoding="utf-8")
    return str(path)


@pytest.fixture
def report_dir(tmp_path, monkeypatch):
    """Send the JSON Lines event log to a temporary directory."""
    from wxr_static.utils import errors

    path = tmp_path / "reports"
    monkeypatch.setattr(errors, "REPORT_DIR", str(path))
    return path
