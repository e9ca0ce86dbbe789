# Script that resolves the best neighborhood for a JSON list of attractions
from argparse import ArgumentParser
import json
import logging
import sys
from pathlib import Path

from neighborhood_resolver.geocoding import Attraction, NominatimGeocoder
from neighborhood_resolver.neighborhoods import DuckDBLookup, NeighborhoodLoader
from neighborhood_resolver.pipeline import AttractionPipeline
from neighborhood_resolver.selection import (
    BestNeighborhoodResolver,
    DuckDBDistanceProvider,
    HaversineDistanceProvider,
)
from neighborhood_resolver.settings import settings
from neighborhood_resolver.utils.errors import DistanceResolutionError


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    parser = ArgumentParser(description='Resolve the best neighborhood for a batch of attractions')
    parser.add_argument('attractions', type=Path, help='JSON file with a list of {name, address[, latitude, longitude]}')
    parser.add_argument('--db', type=Path, default=settings.ddb_path)
    parser.add_argument('--table', '-t', type=str, default=settings.neighborhoods_table)
    parser.add_argument('--load-polygons', '-l', type=Path, default=None,
                        help='Load neighborhood polygons from this file into --table first')
    parser.add_argument('--distance', choices=['haversine', 'duckdb'], default='haversine')
    parser.add_argument('--workers', '-w', type=int, default=settings.distance_workers)
    parser.add_argument('--progress', '-p', action='store_true')
    args = parser.parse_args()

    if args.load_polygons:
        loader = NeighborhoodLoader(args.load_polygons)
        loader.persist(loader.load(), table_name=args.table, db_path=str(args.db))

    with open(args.attractions, 'r', encoding='utf8') as fh:
        attractions = [Attraction.model_validate(a) for a in json.load(fh)]

    if args.distance == 'duckdb':
        distance_provider = DuckDBDistanceProvider()
    else:
        distance_provider = HaversineDistanceProvider()

    pipeline = AttractionPipeline(
        geocoder=NominatimGeocoder(),
        lookup=DuckDBLookup(table_name=args.table, db_path=str(args.db)),
        resolver=BestNeighborhoodResolver(distance_provider, max_workers=args.workers),
    )

    try:
        result = pipeline.run(attractions, progress=args.progress)
    except DistanceResolutionError as e:
        logging.error(f'Distance lookup failed, try again: {e}')
        sys.exit(2)

    json.dump(result.to_dict(), sys.stdout, indent=2)
    print()
