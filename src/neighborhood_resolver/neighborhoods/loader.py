from __future__ import annotations

from pathlib import Path
from typing import Mapping
import logging

import pandas as pd
import geopandas as gpd
from pydantic import BaseModel, ValidationError

from ..db.db import duckdb_connection, split_table_name
from ..settings import settings
from ..utils.errors import DataValidationError
from .neighborhood import NeighborhoodRecord

logger = logging.getLogger('NeighborhoodLoader')


class NeighborhoodLoader:
    """Load neighborhood polygons from a vector file and persist them to DuckDB.

    Any format geopandas can read works (GeoJSON, Shapefile, GeoPackage, ...).
    Source columns are renamed to name/city/state/country with `column_map`.

    Usage:
        gdf = NeighborhoodLoader('data/raw/neighborhoods.geojson').load()

        # Load and write to settings.neighborhoods_table
        NeighborhoodLoader.from_source('data/raw/neighborhoods.geojson')
    """

    CRS = 'EPSG:4326'
    COLUMNS = ('name', 'city', 'state', 'country')

    def __init__(self, path: str | Path, column_map: Mapping[str, str] | None = None, layer: str | None = None):
        self.path = Path(path)
        self.column_map = dict(column_map or {})
        self.layer = layer

    @classmethod
    def from_source(
        cls,
        path: str | Path,
        persist: bool = True,
        table_name: str | None = None,
        **kwargs,
    ) -> gpd.GeoDataFrame:
        """Load polygons from `path` and optionally persist them.

        Args:
            path: Vector file with neighborhood polygons
            persist: Whether to write to the database (default: True)
            table_name: Destination 'schema.table' (default: settings.neighborhoods_table)
            **kwargs: Passed to the loader constructor

        Returns:
            Validated GeoDataFrame
        """
        loader = cls(path, **kwargs)
        gdf = loader.load()
        if persist:
            loader.persist(gdf, table_name=table_name)
        return gdf

    def load(self) -> gpd.GeoDataFrame:
        """Read, reproject and validate polygons. No side effects."""
        raw_gdf = self._load_raw()
        return self._validate_records(raw_gdf)

    def _load_raw(self) -> gpd.GeoDataFrame:
        logger.info(f"Reading neighborhoods from {self.path}")
        gdf = gpd.read_file(self.path, layer=self.layer) if self.layer else gpd.read_file(self.path)
        if self.column_map:
            gdf = gdf.rename(columns=self.column_map)
        if gdf.crs is not None and gdf.crs != self.CRS:
            gdf = gdf.to_crs(self.CRS)
        for col in self.COLUMNS:
            if col not in gdf.columns:
                gdf[col] = ""
        geom_col = gdf.geometry.name
        gdf = gdf[[*self.COLUMNS, geom_col]]
        if geom_col != 'geometry':
            gdf = gdf.rename_geometry('geometry')
        return gdf

    def _validate_df_to_models(self, raw_gdf: gpd.GeoDataFrame, model: type[BaseModel]) -> list[BaseModel]:
        """Validate dataframe with given pydantic model."""
        rows = raw_gdf.to_dict(orient='records')
        try:
            return [model.model_validate(r, strict=False) for r in rows]
        except ValidationError as e:
            logger.error(
                f'Validation for df of {model.__name__} failed',
                extra={'source': str(self.path), 'error_count': len(e.errors())}
            )
            raise DataValidationError(str(self.path), e.errors(), original=e)

    def _validate_records(self, raw_gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
        records = self._validate_df_to_models(raw_gdf, NeighborhoodRecord)
        validated = [m.model_dump() for m in records]
        gdf = gpd.GeoDataFrame(validated, geometry='geometry', crs=self.CRS)
        logger.info(f"Validated {len(gdf)} neighborhood polygons")
        return gdf

    def persist(
        self,
        gdf: gpd.GeoDataFrame,
        table_name: str | None = None,
        db_path: str | None = None,
    ) -> str:
        """Save polygons to DuckDB, replacing the table.

        Geometries are passed as WKT and stored in a GEOMETRY column `geom`.

        Returns:
            Full table name (schema.table or just table)
        """
        full_name = table_name or settings.neighborhoods_table
        schema_name, _ = split_table_name(full_name)

        # DuckDB gets a plain DataFrame with the geometry as WKT text
        df = pd.DataFrame(gdf.drop(columns='geometry')).assign(wkt=gdf.geometry.to_wkt())
        with duckdb_connection(db_path) as db_con:
            if schema_name:
                db_con.execute(f"CREATE SCHEMA IF NOT EXISTS {schema_name};")

            db_con.register("_tmp_neighborhoods", df)
            try:
                db_con.execute(f"DROP TABLE IF EXISTS {full_name};")
                db_con.execute(f"""
                    CREATE TABLE {full_name} AS
                    SELECT name, city, state, country, ST_GeomFromText(wkt) AS geom
                    FROM _tmp_neighborhoods;
                """)
                logger.info(f"Saved {len(df)} rows to {full_name}")
            finally:
                db_con.unregister("_tmp_neighborhoods")

        return full_name
