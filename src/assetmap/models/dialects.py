"""Per-platform query dialect registry.

Each platform's grammar facts live in one immutable ``PlatformDialect``
record: the syntax hints offered by autocomplete, the logical-AND connector,
the free-text placeholder, the location field templates, and a few example
queries. Adding a platform is a data change here, not a new branch in the
composer.
"""

from __future__ import annotations

from dataclasses import dataclass

from assetmap.models.platforms import Platform, parse_platform

SYMBOLIC_AND = "&&"
KEYWORD_AND = "AND"


@dataclass(frozen=True)
class SyntaxHint:
    """One field example plus a short description."""

    example: str
    description: str


@dataclass(frozen=True)
class PlatformDialect:
    """Static grammar facts for one recon platform."""

    platform: Platform
    hints: tuple[SyntaxHint, ...]
    connector: str
    placeholder: str
    province_template: str
    city_template: str
    examples: tuple[str, ...] = ()

    def province_clause(self, province: str) -> str:
        return self.province_template.format(value=province)

    def city_clause(self, city: str) -> str:
        return self.city_template.format(value=city)


def _hints(*pairs: tuple[str, str]) -> tuple[SyntaxHint, ...]:
    return tuple(SyntaxHint(example, description) for example, description in pairs)


DIALECTS: dict[Platform, PlatformDialect] = {
    Platform.HUNTER: PlatformDialect(
        platform=Platform.HUNTER,
        hints=_hints(
            ('domain.suffix="test.com"', "Domain suffix"),
            ('ip="1.1.1.1"', "IP address"),
            ('web.title="登录"', "Page title"),
            ('header="thinkphp"', "HTTP header"),
            ('app.name="ThinkPHP"', "Application framework"),
            ('port="3306"', "Port"),
            ('status_code="200"', "Status code"),
            ('protocol="https"', "Protocol"),
            ('ip.province="北京市"', "Province"),
            ('ip.city="北京市"', "City"),
            ('ip.country="中国"', "Country"),
            ('web.body="login"', "Page body"),
            ('cert="baidu"', "Certificate"),
            ('banner="nginx"', "Banner"),
        ),
        connector=SYMBOLIC_AND,
        placeholder='e.g. domain.suffix="test.com" && ip.province="北京市"',
        province_template='ip.province="{value}"',
        city_template='ip.city="{value}"',
        examples=(
            'ip="8.8.8.8"',
            'web.title="登录" && country="CN"',
            'web.body="powered by" && ip.port="80"',
        ),
    ),
    Platform.FOFA: PlatformDialect(
        platform=Platform.FOFA,
        hints=_hints(
            ('domain="test.com"', "Domain"),
            ('ip="1.1.1.1"', "IP address"),
            ('title="登录"', "Page title"),
            ('header="nginx"', "HTTP header"),
            ('server=="Microsoft-IIS/10"', "Server"),
            ('port="6379"', "Port"),
            ('protocol="https"', "Protocol"),
            ('country="CN"', "Country"),
            ('region="Beijing"', "Region"),
            ('city="Beijing"', "City"),
            ('body="login"', "Page body"),
            ('cert="baidu"', "Certificate"),
            ('banner="nginx"', "Banner"),
        ),
        connector=SYMBOLIC_AND,
        placeholder='e.g. domain="test.com" && country="CN"',
        province_template='region="{value}"',
        city_template='city="{value}"',
        examples=(
            'ip="8.8.8.8"',
            'title="登录" && country="CN"',
            'body="powered by" && port="80"',
        ),
    ),
    Platform.QUAKE: PlatformDialect(
        platform=Platform.QUAKE,
        hints=_hints(
            ("domain: test.com", "Domain"),
            ('ip: "1.1.1.1"', "IP address"),
            ('title: "登录"', "Page title"),
            ('response: "nginx"', "Response content"),
            ('service: "IIS"', "Service"),
            ("port: 3389", "Port"),
            ('protocol: "https"', "Protocol"),
            ('country: "China"', "Country"),
            ('province: "Beijing"', "Province"),
            ('city: "Beijing"', "City"),
            ('cert: "baidu"', "Certificate"),
            ('banner: "nginx"', "Banner"),
        ),
        connector=KEYWORD_AND,
        placeholder='e.g. domain: test.com AND country: "China"',
        province_template='province: "{value}"',
        city_template='city: "{value}"',
        examples=(
            'ip:"8.8.8.8"',
            'title:"登录" AND country:"CN"',
            'body:"powered by" AND port:"80"',
        ),
    ),
    Platform.DAYDAYMAP: PlatformDialect(
        platform=Platform.DAYDAYMAP,
        hints=_hints(
            ('domain:"test.com"', "Domain"),
            ('ip:"1.1.1.1"', "IP address"),
            ('ip:"1.1.1.0/24"', "IP range (CIDR)"),
            ('title:"登录"', "Page title"),
            ('server:"nginx"', "Server"),
            ('app:"WordPress"', "Application"),
            ('port:"80"', "Port"),
            ('protocol:"https"', "Protocol"),
            ('country:"中国"', "Country"),
            ('province:"北京"', "Province"),
            ('city:"北京"', "City"),
            ('body:"login"', "Page body"),
            ('cert:"baidu"', "Certificate"),
            ('banner:"nginx"', "Banner"),
        ),
        connector=KEYWORD_AND,
        placeholder='e.g. ip:"1.1.1.0/24" or domain:"test.com" (colon plus quotes)',
        province_template='province:"{value}"',
        city_template='city:"{value}"',
        examples=(
            'ip="8.8.8.8"',
            'title="登录" && country="CN"',
            'body="powered by" && port="80"',
        ),
    ),
}


def dialect_for(platform: str | Platform) -> PlatformDialect:
    """Return the dialect for a platform key."""
    return DIALECTS[parse_platform(platform)]


def connector_for(platform: str | Platform) -> str:
    """Return the logical-AND token (``&&`` or ``AND``) for a platform."""
    return dialect_for(platform).connector


def placeholder_for(platform: str | Platform) -> str:
    """Return the free-text placeholder example for a platform."""
    return dialect_for(platform).placeholder


def examples_for(platform: str | Platform) -> tuple[str, ...]:
    """Return example queries used to seed the converter input."""
    return dialect_for(platform).examples or DIALECTS[Platform.FOFA].examples
