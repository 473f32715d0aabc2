from driverforge.cli.app import main

main()
