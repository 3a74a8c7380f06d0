# Services package init
