from sitesearch.crawler.http_client import FetchedPage, PageFetcher
from sitesearch.crawler.parser import ParsedPage, PageParser
from sitesearch.crawler.urls import UrlFilter, relative_path
from sitesearch.crawler.crawler import CrawlRunState, SiteCrawler

__all__ = [
	"FetchedPage",
	"PageFetcher",
	"ParsedPage",
	"PageParser",
	"UrlFilter",
	"relative_path",
	"CrawlRunState",
	"SiteCrawler",
]
