"""
ldap_crawl.__main__
~~~~~~~~~~~~~~~~~~~
"""
import argparse
import logging
import sys

from . import logger
from .config import get_config_or_exit
from .crawler import LdapCrawler
from .exc import CrawlError
from .host import PrintingPusher, StreamResponse


def crawl(doc_id: str | None = None) -> int:
    config = get_config_or_exit()
    if not config.servers:
        logger.warning("No servers configured, see LDAP_CRAWL_SERVERS.")
    crawler = LdapCrawler()
    try:
        crawler.init(config)
        if doc_id is None:
            logger.info("Starting a full scan. See --help for other options.")
            crawler.get_doc_ids(PrintingPusher())
            return 0

        response = StreamResponse(sys.stdout.buffer)
        crawler.get_doc_content(doc_id, response)
        if not response.found:
            logger.error("%s not found", doc_id)
            return 1
        return 0
    finally:
        crawler.close()


NAME_LEVEL_MAPPING: dict[str, int] = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'critical': logging.CRITICAL,
}


parser = argparse.ArgumentParser(description="LDAP directory crawler")
parser.add_argument('--fetch', dest='doc_id', metavar='DOCID', default=None,
                    help="Render a single document instead of listing all document ids")
parser.add_argument("-l", "--log", dest='loglevel', type=str,
                    choices=list(NAME_LEVEL_MAPPING.keys()), default='info',
                    help="Set the loglevel")
parser.add_argument("-d", "--debug", dest='loglevel', action='store_const',
                    const='debug', help="Short for --log=debug")


def add_stream_logging(logger: logging.Logger, level: int = logging.INFO) -> None:
    handler = logging.StreamHandler()
    fmt = logging.Formatter("%(levelname)s %(asctime)s %(name)s %(message)s")
    handler.setFormatter(fmt)
    logger.addHandler(handler)
    logger.setLevel(level)


def main() -> int:
    args = parser.parse_args()

    add_stream_logging(logger, level=NAME_LEVEL_MAPPING[args.loglevel])

    try:
        return crawl(args.doc_id)
    except KeyboardInterrupt:
        logger.fatal("SIGINT received, stopping.")
        return 1
    except CrawlError as e:
        logger.critical("%s", e, exc_info=True)
        return 1


if __name__ == '__main__':
    exit(main())
